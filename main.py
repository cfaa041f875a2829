"""Main entry point for the Stossymoji CLI."""

from stossymoji.cli import main


if __name__ == "__main__":
    main()
