# routerbench/__main__.py
import sys

from routerbench.cli import main

sys.exit(main())
