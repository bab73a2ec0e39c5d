import sys

from file_organizer.app import main

sys.exit(main())
