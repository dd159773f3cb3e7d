import sys

from idreesia_admin.cli import main

sys.exit(main())
