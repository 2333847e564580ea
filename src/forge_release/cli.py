"""CLI entry point for forge-release."""

import click

from forge_release import __version__
from forge_release.commands import detect, publish


@click.group()
@click.version_option(version=__version__, prog_name="forge-release")
def main():
    """forge-release - Create and update releases on GitHub and Gitea.

    Run as a CI step to create or update the release for a tag and
    attach build artifacts to it.

    Examples:

        forge-release publish --tag v1.0.0 --artifacts "dist/*"

        forge-release publish --allow-updates --replaces-artifacts --artifacts "build/*.zip"

        forge-release detect --repository https://gitea.example.com/owner/repo
    """
    pass


# Register commands
main.add_command(publish.publish)
main.add_command(detect.detect)


if __name__ == "__main__":
    main()
