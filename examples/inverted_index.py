"""
Inverted index MapReduce example.
Creates an index mapping each word to the lines it appears in.

Input lines look like "<doc_id><TAB><text>"; lines without a tab use the
whole line as text and "unknown" as the document id.
"""

import string
from itertools import groupby


def map_function(line):
    """
    Map function: emit "word<TAB>doc_id" for each word.

    Args:
        line: Input line

    Returns:
        List of "word<TAB>doc_id" records
    """
    doc_id, sep, text = line.partition('\t')
    if not sep:
        doc_id, text = 'unknown', line
    words = text.translate(str.maketrans('', '', string.punctuation)).split()
    return [f"{word.lower()}\t{doc_id}" for word in words if word]


def key_function(record):
    """Group records by word, not by the whole record."""
    return record.split('\t', 1)[0]


def reduce_function(records):
    """
    Reduce function: collect all document IDs for a word.

    Args:
        records: "word<TAB>doc_id" records, grouped by word

    Yields:
        "word<TAB>comma-separated unique document IDs" lines
    """
    for word, group in groupby(records, key=key_function):
        # Remove duplicates and sort
        unique_docs = sorted({record.split('\t', 1)[1] for record in group})
        yield f"{word}\t{','.join(unique_docs)}"
