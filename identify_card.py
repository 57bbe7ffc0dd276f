"""
PokeScan - Identify a card photo from the command line

Usage:
  python identify_card.py scan.jpg
  python identify_card.py scan.jpg --recognizer tesseract --json
"""
import argparse
import json
import sys
from pathlib import Path

from card_identifier import CardIdentifier
from database import init_db
from exceptions import ScanError
from text_recognition import RECOGNIZERS, build_recognizer


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description='Identify a Pokemon card from a photo')
    parser.add_argument('image_path', type=Path, help='Path to the card photo')
    parser.add_argument('--recognizer', choices=sorted(RECOGNIZERS), default=None,
                        help='Text recognizer (default: POKESCAN_TEXT_RECOGNIZER or vision)')
    parser.add_argument('--json', action='store_true', help='Print matches as JSON')
    args = parser.parse_args(argv)

    if not args.image_path.is_file():
        print(f"Error: Image not found: {args.image_path}")
        return 1

    init_db()
    recognizer = build_recognizer(args.recognizer) if args.recognizer else build_recognizer()
    identifier = CardIdentifier(recognizer=recognizer)

    try:
        matches = identifier.identify(args.image_path.read_bytes())
    except ScanError as e:
        print(f"Error processing scan: {e}")
        return 2

    if args.json:
        print(json.dumps([m.to_dict() for m in matches], indent=2))
        return 0

    if not matches:
        print("No matching card found.")
    elif len(matches) == 1:
        card = matches[0]
        print(f"Identified: {card.name} ({card.id}) HP={card.hp}")
    else:
        print(f"{len(matches)} possible matches:")
        for card in matches:
            print(f"  {card.id:<15} {card.name} HP={card.hp}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
