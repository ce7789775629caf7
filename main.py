#!/usr/bin/env python3
"""Commerce-to-CMS Sync CLI.

This module provides a command-line interface for pushing the commerce
catalog (products with their variants, collections, categories) from the
commerce PostgreSQL database into the CMS.

Architecture:
    - CMSClient is the shared HTTP layer for all CMS calls
    - ReconciliationService finds each entry by system id, then creates or updates it
    - FullResyncUseCase pages through the database 100 ids at a time
    - EventDispatcher replays a single event (e.g. product.updated)

Environment Variables Required:
    - CMS_BASE_URL: CMS API root
    - CMS_API_KEY: CMS API token (CMS_TOKEN also accepted)
    - DATABASE_URL: Commerce PostgreSQL connection string

Example Usage:
    $ python main.py                              # Resync products
    $ python main.py --all                        # Resync products, collections, categories
    $ python main.py --categories                 # Resync categories only
    $ python main.py --check                      # Verify the CMS connection
    $ python main.py --event product.updated --id prod_123
"""
import argparse
import asyncio
import logging
import sys
from datetime import datetime, timezone

from dotenv import load_dotenv

load_dotenv()

from cms_sync.api import CMSClient, CMSSyncError, ConfigurationError
from cms_sync.config import CMSSettings
from cms_sync.events import EventDispatcher
from cms_sync.sync.adapters import CMSContentAPI, CMSFieldMapper, PostgresCommerceRepository
from cms_sync.sync.domain.entities import EntityType, StepResult
from cms_sync.sync.use_cases import (
    FullResyncUseCase,
    ReconciliationService,
    SyncEntitiesUseCase,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


async def setup_database(settings: CMSSettings):
    """Create database connection pool.

    Returns:
        asyncpg.Pool or None if database not configured
    """
    if not settings.database_url:
        print("[Main] DATABASE_URL is not set")
        return None

    import asyncpg

    try:
        pool = await asyncpg.create_pool(
            settings.database_url,
            min_size=2,
            max_size=10,
            command_timeout=60,
        )
        print("[Main] Connected to PostgreSQL")
        return pool
    except Exception as e:
        print(f"[Main] Database connection failed: {e}")
        return None


def build_dispatcher(client: CMSClient, db_pool, settings: CMSSettings) -> EventDispatcher:
    """Wire the sync use cases on top of an open client and pool."""
    repo = PostgresCommerceRepository(db_pool)
    reconciler = ReconciliationService(
        cms=CMSContentAPI(client, default_locale=settings.default_locale),
        mapper=CMSFieldMapper(settings.system_id_key),
        system_id_key=settings.system_id_key,
    )
    sync_entities = SyncEntitiesUseCase(reconciler, repo)
    resync = FullResyncUseCase(repo, sync_entities, page_size=settings.resync_page_size)
    return EventDispatcher(sync_entities, resync)


def selected_types(args: argparse.Namespace) -> list[EntityType]:
    if args.all:
        return [EntityType.PRODUCT, EntityType.COLLECTION, EntityType.CATEGORY]

    types = []
    if args.products:
        types.append(EntityType.PRODUCT)
    if args.collections:
        types.append(EntityType.COLLECTION)
    if args.categories:
        types.append(EntityType.CATEGORY)
    return types or [EntityType.PRODUCT]


async def run_sync(args: argparse.Namespace) -> int:
    """Main sync orchestration function.

    Returns:
        Process exit code
    """
    start_time = datetime.now(timezone.utc)
    print(f"[Main] Starting at {start_time.isoformat()}")

    try:
        settings = CMSSettings.from_env()
    except ConfigurationError as e:
        print(f"[Main] Configuration error: {e}")
        return 1

    async with CMSClient.from_settings(settings) as client:
        try:
            await client.verify_connection(settings.system_id_key)
        except CMSSyncError as e:
            print(f"[Main] CMS connection check failed: {e}")
            return 1

        if args.check:
            print(f"✓ Connected to CMS at {settings.base_url}")
            return 0

        db_pool = await setup_database(settings)
        if db_pool is None:
            return 1

        try:
            dispatcher = build_dispatcher(client, db_pool, settings)

            if args.event:
                try:
                    result = await dispatcher.handle(args.event, {"id": args.id} if args.id else {})
                except ValueError as e:
                    print(f"[Main] {e}")
                    return 2

                if isinstance(result, StepResult):
                    print(f"\n{args.event.upper()}: {result.to_dict()}")
                    return 0 if result.success else 1
                results = result if isinstance(result, list) else [result]
            else:
                results = []
                for entity_type in selected_types(args):
                    print("\n" + "=" * 60)
                    print(f"SYNCING {entity_type.collection.upper()}")
                    print("=" * 60)
                    results.append(await dispatcher.resync.execute(entity_type))

            print("\n" + "=" * 60)
            print("SYNC COMPLETE")
            print("=" * 60)
            for result in results:
                print(f"\n{result.entity_type.collection.upper()}: {result.to_dict()}")
                for detail in result.error_details[:10]:
                    print(f"  ✗ {detail}")
        finally:
            await db_pool.close()

    end_time = datetime.now(timezone.utc)
    duration = (end_time - start_time).total_seconds()
    print(f"\n[Main] Completed in {duration:.1f} seconds")

    return 0 if all(r.success for r in results) else 1


def main():
    parser = argparse.ArgumentParser(
        description="Sync the commerce catalog to the CMS",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                                  # Resync products
  python main.py --all                            # Resync all entity types
  python main.py --collections --categories       # Resync collections and categories
  python main.py --check                          # Verify CMS credentials and content model
  python main.py --event product.deleted --id prod_123
        """
    )

    # Resource selection
    resource_group = parser.add_argument_group("Resource Selection")
    resource_group.add_argument(
        "--products",
        action="store_true",
        help="Resync products and their variants (default if nothing specified)"
    )
    resource_group.add_argument(
        "--collections",
        action="store_true",
        help="Resync collections"
    )
    resource_group.add_argument(
        "--categories",
        action="store_true",
        help="Resync categories"
    )
    resource_group.add_argument(
        "--all",
        action="store_true",
        help="Resync products, collections and categories"
    )

    # Event replay
    event_group = parser.add_argument_group("Event Options")
    event_group.add_argument(
        "--event",
        type=str,
        metavar="NAME",
        help="Handle a single event, e.g. product.updated or cms.sync"
    )
    event_group.add_argument(
        "--id",
        type=str,
        metavar="ID",
        help="Entity id for --event"
    )

    parser.add_argument(
        "--check",
        action="store_true",
        help="Only verify the CMS connection"
    )

    args = parser.parse_args()

    sys.exit(asyncio.run(run_sync(args)))


if __name__ == "__main__":
    main()
