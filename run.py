"""
Simple launcher for the Receipt Intelligence Pipeline.
Pushes saved receipt emails (.eml or plain text with headers) through the
pipeline and prints each ingestion result as JSON.
"""

import argparse
import sys
from email import message_from_binary_file, policy

from dotenv import load_dotenv

from receipt_pipeline import InMemoryReceiptStore, ReceiptPipeline


def read_email(path):
    """Returns (subject, sender, text body, html body) for a saved email."""
    with open(path, "rb") as f:
        message = message_from_binary_file(f, policy=policy.default)

    text_part = message.get_body(preferencelist=("plain",))
    html_part = message.get_body(preferencelist=("html",))
    return (
        str(message.get("Subject", "")),
        str(message.get("From", "")),
        text_part.get_content() if text_part else "",
        html_part.get_content() if html_part else None,
    )


def main():
    load_dotenv()

    arg_parser = argparse.ArgumentParser(description="Ingest receipt emails and print the results as JSON.")
    arg_parser.add_argument("emails", nargs="+", help="Paths to saved receipt emails")
    arg_parser.add_argument("--user", default="1", help="User id the receipts belong to")
    arg_parser.add_argument("--no-llm", action="store_true", help="Disable the LLM extraction fallback")
    args = arg_parser.parse_args()

    pipeline = ReceiptPipeline(InMemoryReceiptStore(), use_oracle=not args.no_llm)

    failures = 0
    for path in args.emails:
        try:
            subject, sender, body_text, body_html = read_email(path)
        except OSError as e:
            print(f" Could not read {path}: {e}", file=sys.stderr)
            failures += 1
            continue

        result = pipeline.ingest_email(args.user, subject, sender, body_text=body_text, body_html=body_html)
        if result.status == "failed":
            failures += 1
        print(result.model_dump_json(indent=2))

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
