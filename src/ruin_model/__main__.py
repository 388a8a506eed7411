# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
