"""Entry point for 'python -m nonceauth' command."""

from nonceauth.cli import main

if __name__ == "__main__":
    main()
