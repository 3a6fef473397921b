import sys

from deribit_desk.cli import main

sys.exit(main())
