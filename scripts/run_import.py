#!/usr/bin/env python3
"""
Run a Flutter project import, inline or through the Celery worker.
Usage: python scripts/run_import.py --url https://github.com/org/app.git --output ./rebuilt
       python scripts/run_import.py --path ./my_app --output ./rebuilt --no-offline
       python scripts/run_import.py --status 3f0c...
"""
import argparse
import json
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from pydantic import ValidationError
from rebuilder.core.logging import configure_logging
from rebuilder.core.engine import ImportEngine
from rebuilder.schemas.imports import ImportRequest, RebuildOptions


def build_request(args) -> ImportRequest:
    options = RebuildOptions(
        keep_entities=not args.migrate_entities,
        keep_screen_structure=not args.regenerate_screens,
        apply_design_system=not args.no_design,
        add_offline_support=not args.no_offline,
        target_architecture=args.architecture,
        target_state_approach=args.state,
        generate_tests=not args.no_tests,
        run_bootstrap=not args.no_bootstrap,
        format_code=not args.no_format,
        enable_encryption=args.encrypt,
    )
    return ImportRequest(
        source_url=args.url,
        source_path=args.path,
        branch=args.branch,
        depth=args.depth,
        output_path=args.output,
        analysis_depth=args.analysis_depth,
        options=options,
    )


def main():
    parser = argparse.ArgumentParser(description="Import a Flutter project and rebuild it")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--url", help="Git URL of the source project")
    source.add_argument("--path", help="Local source project directory")
    source.add_argument("--status", metavar="JOB_ID", help="Show the state of a queued import job")
    parser.add_argument("--output", help="Directory for the rebuilt project")
    parser.add_argument("--branch", default="main")
    parser.add_argument("--depth", type=int, default=1)
    parser.add_argument("--analysis-depth", choices=["shallow", "medium", "deep"], default="deep")
    parser.add_argument("--architecture", choices=["clean", "feature-first", "layer-first", "keep"], default="keep")
    parser.add_argument("--state", choices=["riverpod", "bloc", "keep"], default="keep")
    parser.add_argument("--migrate-entities", action="store_true", help="Regenerate entities instead of copying them")
    parser.add_argument("--regenerate-screens", action="store_true")
    parser.add_argument("--no-design", action="store_true")
    parser.add_argument("--no-offline", action="store_true")
    parser.add_argument("--encrypt", action="store_true", help="Encrypt the offline database")
    parser.add_argument("--no-tests", action="store_true")
    parser.add_argument("--no-bootstrap", action="store_true", help="Skip flutter create")
    parser.add_argument("--no-format", action="store_true", help="Skip dart format")
    parser.add_argument("--enqueue", action="store_true", help="Queue the import on the Celery worker")
    args = parser.parse_args()

    configure_logging()

    if args.status:
        from rebuilder.tasks.jobs import get_import_job
        job = get_import_job(args.status)
        if job is None:
            print(f"Import job not found: {args.status}")
            sys.exit(1)
        print(job.model_dump_json(indent=2))
        return

    if not args.output:
        parser.error("--output is required for an import")

    try:
        request = build_request(args)
    except ValidationError as e:
        print(f"Invalid import request:\n{e}")
        sys.exit(2)

    if args.enqueue:
        from rebuilder.tasks.jobs import enqueue_import
        job_id = enqueue_import(request)
        print(f"Queued import job: {job_id}")
        return

    result = ImportEngine().run(request)
    print(json.dumps(result.to_dict(), indent=2))
    if not result.success:
        sys.exit(1)


if __name__ == "__main__":
    main()
