import sys

from json_patch_stream.cli import main

if __name__ == "__main__":
    sys.exit(main())
