import sys
import os
import argparse
import logging

# Add the project root to the python path so we can import from services
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from dotenv import load_dotenv

env_path = os.path.join(os.path.dirname(__file__), '..', '.env.local')
if not os.path.exists(env_path):
    env_path = os.path.join(os.path.dirname(__file__), '..', '.env')
load_dotenv(env_path)

from database.db import create_db_engine, make_session_factory
from services.graph_store import build_graph_store
from services.knowledge.reconcile import find_orphans, sync_topic_ids

logger = logging.getLogger("reconcile_graph")


def cmd_orphans(session_factory, graph_store, args):
    with session_factory() as db:
        orphans = find_orphans(db, graph_store)
    if not orphans:
        print("No orphan graph nodes.")
        return 0
    print(f"{len(orphans)} orphan graph node(s):")
    for node in orphans:
        print(f" - {node['name']} (topicId={node.get('topicId')})")
    return 1


def cmd_sync_ids(session_factory, graph_store, args):
    with session_factory() as db:
        updated = sync_topic_ids(db, graph_store)
    print(f"Updated {updated} node(s).")
    return 0


def cmd_reset(session_factory, graph_store, args):
    if not args.yes:
        confirm = input("This deletes EVERY node and relationship in the graph. Proceed? (yes/no): ")
        if confirm.lower() != "yes":
            print("Operation cancelled.")
            return 1
    graph_store.reset()
    print("Graph reset.")
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(description="Reconcile the concept graph with the content store.")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("orphans", help="List graph nodes with no matching Topic row").set_defaults(func=cmd_orphans)
    sub.add_parser("sync-ids", help="Rewrite topicId back-references by name").set_defaults(func=cmd_sync_ids)
    reset = sub.add_parser("reset", help="Delete the whole graph")
    reset.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    reset.set_defaults(func=cmd_reset)

    args = parser.parse_args(argv)
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())

    engine = create_db_engine()
    graph_store = build_graph_store()
    try:
        return args.func(make_session_factory(engine), graph_store, args)
    finally:
        graph_store.close()
        engine.dispose()


if __name__ == "__main__":
    sys.exit(main())
