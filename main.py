import logging
import sys

import config
from app import TVDisplayApp

log = logging.getLogger("tvsync")


def main():
    raw = sys.argv[1] if len(sys.argv) > 1 else config.TV_ID
    try:
        tv_id = int(raw)
    except (TypeError, ValueError):
        print("usage: tv-display <tv-id>   (or set TV_ID)", file=sys.stderr)
        sys.exit(2)

    log.info(f"Starting display for TV {tv_id} against {config.API_BASE_URL}")
    TVDisplayApp(tv_id).run()


if __name__ == "__main__":
    main()
