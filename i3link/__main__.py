# i3link/__main__.py
import sys

from i3link.cli.main import main

sys.exit(main())
