"""
Run duplicate detection or program matching on exported files.

    python run_detection.py detect programs.xlsx --pblanc-seq --output groups.json
    python run_detection.py match org.json programs.csv --min-score 50 --limit 20
"""
import argparse
import json
import logging
import sys

from pydantic import ValidationError

from etl.duplicates import DEFAULT_SIMILARITY_THRESHOLD, detect_duplicates
from etl.ingest import IngestError, load_organization, load_programs, load_records
from etl.report import detection_stats, match_stats
from logic import enrich_match_explanations, generate_matches

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger(__name__)


def run_detect(args) -> dict:
    records = load_records(args.file)
    result = detect_duplicates(records, enable_pblanc_seq=args.pblanc_seq,
                               similarity_threshold=args.threshold)
    return {
        'data': [g.model_dump(mode='json', by_alias=True) for g in result.groups],
        'totalCount': len(result.groups),
        'summary': result.summary.model_dump(mode='json', by_alias=True),
        'stats': detection_stats(result, len(records)),
    }


def run_match(args) -> dict:
    org = load_organization(args.org_file)
    programs = load_programs(args.programs_file)
    results = generate_matches(org, programs, minimum_score=args.min_score,
                               include_expired=args.include_expired, limit=args.limit)
    results = enrich_match_explanations(results, org)
    return {
        'data': [r.model_dump(mode='json', by_alias=True) for r in results],
        'totalCount': len(results),
        'stats': match_stats(results, len(programs)),
    }


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description='Program duplicate detection and SME matching')
    sub = parser.add_subparsers(dest='command', required=True)

    p_detect = sub.add_parser('detect', help='Group duplicate program records')
    p_detect.add_argument('file', help='CSV / Excel / JSON export of program records')
    p_detect.add_argument('--threshold', type=float, default=DEFAULT_SIMILARITY_THRESHOLD,
                          help='Title similarity threshold (0, 1]')
    p_detect.add_argument('--pblanc-seq', action='store_true',
                          help='Also group by announcement sequence number')
    p_detect.add_argument('--output', help='Write JSON here instead of stdout')

    p_match = sub.add_parser('match', help='Rank programs for one organization')
    p_match.add_argument('org_file', help='Organization profile (JSON or one-row table)')
    p_match.add_argument('programs_file', help='Programs export')
    p_match.add_argument('--min-score', type=int, default=40)
    p_match.add_argument('--limit', type=int, default=50)
    p_match.add_argument('--include-expired', action='store_true')
    p_match.add_argument('--output', help='Write JSON here instead of stdout')

    args = parser.parse_args(argv)

    try:
        output = run_detect(args) if args.command == 'detect' else run_match(args)
    except IngestError as e:
        logger.error(str(e))
        return 2
    except ValidationError as e:
        logger.error(f"Invalid input: {e}")
        return 2
    except ValueError as e:
        logger.error(str(e))
        return 2

    text = json.dumps(output, ensure_ascii=False, indent=2)
    if args.output:
        with open(args.output, 'w', encoding='utf-8') as f:
            f.write(text)
        logger.info(f"Wrote {output['totalCount']} entries to {args.output}")
    else:
        print(text)
    return 0


if __name__ == '__main__':
    sys.exit(main())
