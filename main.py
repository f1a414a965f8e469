"""Inngangspunkt for wkrscan."""

from __future__ import annotations


def main() -> int:
    """Start kommandolinjeverktøyet med sen import."""

    from wkrscan.cli import main as cli_main

    return cli_main()


if __name__ == "__main__":
    raise SystemExit(main())
