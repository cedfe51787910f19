#!/usr/bin/env python
"""Stand-in for the compiler executable during local development and tests.

Accepts the same arguments as the real toolchain and writes a result file.
``FAKE_COMPILER_MODE`` selects the behaviour: ``ok`` (default), ``fail``,
``silent`` (exit zero without a result file), ``garbage`` and ``hang``.
"""
from __future__ import annotations

import argparse
import json
import os
import sys
import time
from pathlib import Path

RESULT_FILENAME = "QatCompilationResult.json"


def main() -> None:
    parser = argparse.ArgumentParser(description="Fake compiler writing a canned result file")
    parser.add_argument("command", choices=["build"])
    parser.add_argument("source", help="source file to compile")
    parser.add_argument("-o", "--output", required=True, help="build output directory")
    parser.add_argument("--no-colors", action="store_true")
    args = parser.parse_args()

    mode = os.getenv("FAKE_COMPILER_MODE", "ok")
    if mode == "fail":
        print("fake compiler crashed", file=sys.stderr)
        sys.exit(2)
    if mode == "hang":
        time.sleep(3600)
    if mode == "silent":
        return

    output = Path(args.output)
    output.mkdir(parents=True, exist_ok=True)
    target = output / RESULT_FILENAME
    if mode == "garbage":
        target.write_text("{not json", encoding="utf-8")
        return

    source = Path(args.source).read_text(encoding="utf-8")
    result = {
        "problems": [],
        "status": True,
        "compilationTime": 12,
        "linkingTime": 3,
        "binarySizes": [len(source.encode("utf-8"))],
        "hasMain": "main" in source,
    }
    target.write_text(json.dumps(result), encoding="utf-8")


if __name__ == "__main__":
    main()
