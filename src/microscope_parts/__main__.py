import sys

from microscope_parts.main import main

sys.exit(main())
