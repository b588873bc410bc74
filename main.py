import logging
import sys

from cli.commands import DemosToolsCLI

logging.getLogger("dotenv").setLevel(logging.ERROR)
logging.getLogger("asyncio").setLevel(logging.ERROR)

def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    cli = DemosToolsCLI()
    sys.exit(cli.run(argv))
if __name__ == "__main__":
    main()
