"""Entry point for the attribute command-line tool.

Usage:
  python -m postfix_attr.attrctl encode --codec 0 request=query address=root
  python -m postfix_attr.attrctl send --codec 0 --path /var/spool/postfix/private/verify \\
      request=query address=postmaster@localhost
"""

from __future__ import annotations

from postfix_attr.attr.cli import attr_cli


def main() -> None:
    attr_cli(standalone_mode=True)


if __name__ == "__main__":
    main()
