"""forge-release - create and update releases on GitHub and Gitea from CI."""

__version__ = "0.1.0"
