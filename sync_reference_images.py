"""
PokeScan - Import cards from TCGdex and download missing reference images

Usage:
  python sync_reference_images.py --card-id sv1-001 --card-id base1-4
  python sync_reference_images.py --set sv1 --set base1
  python sync_reference_images.py --missing-sets
  python sync_reference_images.py --limit 500
"""
import argparse
import sys

from api_integrations import TcgDexAPI
from catalog import CARD_FIELDS, CardCatalog
from database import CardCandidate, init_db
from logger import get_logger
from reference_images import ReferenceImageStore

logger = get_logger('sync')


def _fetch_records(card_ids, api):
    records = []
    for card_id in card_ids:
        record = api.get_card(card_id)
        if record:
            records.append(record)
        else:
            print(f'  {card_id}: not found on TCGdex')
    return records


def _print_image_stats(stats):
    print(f"Reference images: {stats['downloaded']} downloaded, "
          f"{stats['present']} already present, {stats['failed']} failed")


def sync(card_ids=None, limit=None, api=None, catalog=None, store=None):
    api = api or TcgDexAPI()
    catalog = catalog or CardCatalog()
    store = store or ReferenceImageStore()

    if card_ids:
        imported = catalog.upsert_cards(_fetch_records(card_ids, api))
        print(f'Imported {imported} cards into the catalog')

    stats = store.fetch_missing(catalog.cards_with_images(limit), api)
    _print_image_stats(stats)
    return stats


def sync_set(set_id, api=None, catalog=None, store=None):
    """
    Import every card of one TCGdex set, then download the reference images
    those cards are missing.

    Returns:
        Image counts plus 'imported', or None when TCGdex has no such set
    """
    api = api or TcgDexAPI()
    catalog = catalog or CardCatalog()
    store = store or ReferenceImageStore()

    card_ids = api.get_set(set_id)
    if card_ids is None:
        print(f'Set {set_id}: not found on TCGdex')
        return None

    records = _fetch_records(card_ids, api)
    for record in records:
        if not record.get('set_id'):
            record['set_id'] = set_id

    imported = catalog.upsert_cards(records)
    print(f'Set {set_id}: imported {imported} of {len(card_ids)} cards')

    candidates = [
        CardCandidate(**{field: record.get(field) for field in CARD_FIELDS})
        for record in records
        if record.get('id') and record.get('name') and record.get('image_url')
    ]
    stats = store.fetch_missing(candidates, api)
    _print_image_stats(stats)
    return dict(stats, imported=imported)


def sync_missing_sets(api=None, catalog=None, store=None):
    """
    Sync every TCGdex set that has no cards in the catalog yet.
    A set that fails is logged and skipped.

    Returns:
        Ids of the sets that were synced
    """
    api = api or TcgDexAPI()
    catalog = catalog or CardCatalog()
    store = store or ReferenceImageStore()

    all_sets = api.get_sets()
    if not all_sets:
        print('No sets returned by TCGdex')
        return []

    known = catalog.set_ids()
    missing = [set_id for set_id in all_sets if set_id not in known]
    print(f'Found {len(missing)} new sets to download')

    synced = []
    for position, set_id in enumerate(missing, 1):
        try:
            if sync_set(set_id, api, catalog, store) is not None:
                synced.append(set_id)
        except Exception as e:
            logger.error(f"Failed to sync set {set_id}: {e}", exc_info=True)
            print(f'Set {set_id}: sync failed ({e})')
        logger.info(f"Missing sets sync progress | {position}/{len(missing)}")

    print(f'Synced {len(synced)} of {len(missing)} new sets')
    return synced


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description='Download card reference images for visual matching')
    parser.add_argument('--card-id', action='append', dest='card_ids', default=[],
                        help='TCGdex card id to import first (repeatable)')
    parser.add_argument('--set', action='append', dest='set_ids', default=[],
                        help='TCGdex set id to import with all its cards (repeatable)')
    parser.add_argument('--missing-sets', action='store_true',
                        help='Import every TCGdex set not yet in the catalog')
    parser.add_argument('--limit', type=int, default=None, help='Only check the first N catalog cards')
    args = parser.parse_args(argv)

    init_db()

    if args.set_ids or args.missing_sets:
        results = [sync_set(set_id) for set_id in args.set_ids]
        if args.missing_sets:
            sync_missing_sets()
        if args.card_ids:
            sync(args.card_ids, args.limit)
        return 1 if any(result is None for result in results) else 0

    stats = sync(args.card_ids, args.limit)
    return 1 if stats['failed'] and not stats['downloaded'] and not stats['present'] else 0


if __name__ == '__main__':
    sys.exit(main())
