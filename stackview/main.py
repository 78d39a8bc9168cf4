#!/usr/bin/env python3
"""
stackview - commit stacks with drag-and-drop history editing
"""

import argparse
import sys

from PySide6.QtWidgets import QApplication, QMessageBox

from stackview.config.settings import Settings
from stackview.ui.main_window import MainWindow


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        prog="stackview",
        description="stackview - commit stacks with drag-and-drop history editing",
    )
    parser.add_argument(
        "repo",
        nargs="?",
        default=None,
        help="Repository to open (default: the repository containing the current directory)",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum number of commits to load (default: repo.commit_limit setting)",
    )
    return parser.parse_args(argv)


def main() -> None:
    args = parse_args()

    app = QApplication(sys.argv)
    app.setApplicationName("stackview")
    app.setOrganizationName("stackview")

    settings = Settings()
    try:
        window = MainWindow(repo_path=args.repo, commit_limit=args.limit, settings=settings)
    except ValueError as e:
        QMessageBox.critical(None, "Repository Required", f"stackview needs a repository.\n\n{e}")
        sys.exit(1)

    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
