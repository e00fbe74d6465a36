"""Module entrypoint for ``python -m navhistory``.

All argument parsing and storage setup happen in ``navhistory.cli``.
"""

from .cli import main


if __name__ == "__main__":
    raise SystemExit(main())
