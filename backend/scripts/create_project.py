"""
Register a project from the command line, or update an existing one.

Usage:
    python -m scripts.create_project <project-id> <name> <origin> [<origin> ...]

Example:
    python -m scripts.create_project shop "Web Shop" https://shop.example.com "https://*.example.com"

The project id is what SDKs send as "project-id". Running the script
again for an existing id replaces its name and origins.
"""

import argparse
import asyncio
import sys

# Ensure the project root is on the path
sys.path.insert(0, ".")

from featherlog.core.database import async_session_factory, engine
from featherlog.core.errors import InvalidInput, ProjectConflict
from featherlog.services.projects import create_project, get_project, update_project


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create or update a Featherlog project.")
    parser.add_argument("project_id", metavar="project-id")
    parser.add_argument("name")
    parser.add_argument("origins", nargs="+", metavar="origin")
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    try:
        async with async_session_factory() as session:
            if await get_project(session, args.project_id) is None:
                project = await create_project(session, args.project_id, args.name, args.origins)
                action = "created"
            else:
                project = await update_project(
                    session, args.project_id, args.origins, name=args.name
                )
                action = "updated"
    except (InvalidInput, ProjectConflict) as exc:
        print(f"Could not save project: {exc}", file=sys.stderr)
        return 1
    finally:
        await engine.dispose()

    print()
    print("=" * 60)
    print(f"  Project {action}")
    print("=" * 60)
    print()
    print(f"  Project:    {project.name}")
    print(f"  Project ID: {project.id}")
    print(f"  Origins:    {', '.join(project.origins)}")
    print("=" * 60)
    print()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
