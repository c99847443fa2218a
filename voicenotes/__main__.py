import sys

from voicenotes.cli import main

sys.exit(main())
