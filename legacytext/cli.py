import argparse, logging, sys

from legacytext.core.errors import ExtractionError, UnsupportedFormatError
from legacytext.utils.file_reader import extract_from_path, supported_extensions


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(
        prog="legacytext",
        description="Extract plain text from " + ", ".join(supported_extensions()) + " files",
    )
    ap.add_argument("file")
    ap.add_argument("-o", "--output", help="write text here instead of stdout")
    ap.add_argument("-v", "--verbose", action="store_true", help="debug logging on stderr")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[%(levelname)s] %(name)s: %(message)s",
    )

    try:
        text = extract_from_path(args.file)
    except UnsupportedFormatError as e:
        print(f"[ERR] {e.kind}: {e.detail}", file=sys.stderr)
        return 2
    except ExtractionError as e:
        print(f"[ERR] {e.kind}: {e.detail}", file=sys.stderr)
        return 1

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(text)
        print(f"저장됨: {args.output} ({len(text)} chars)", file=sys.stderr)
    else:
        sys.stdout.write(text)
        if text and not text.endswith("\n"):
            sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
