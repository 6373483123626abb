import sys

from ui_main_qt import main


if __name__ == "__main__":
    sys.exit(main())
