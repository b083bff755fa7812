"""
Classic MapReduce word count example.
Counts the frequency of each word in the input text.
"""

import string
from itertools import groupby


def map_function(line):
    """
    Map function: emit each word of the line, lowercased.

    Args:
        line: Text line

    Returns:
        List of words
    """
    # Remove punctuation and split into words
    words = line.translate(str.maketrans('', '', string.punctuation)).split()
    return [word.lower() for word in words if word]


def reduce_function(records):
    """
    Reduce function: count each word in the bucket.

    The shuffle keeps every occurrence of a word together, so consecutive
    runs of the same record are one word's complete count.

    Args:
        records: Words assigned to this reducer

    Yields:
        "word<TAB>count" lines
    """
    for word, group in groupby(records):
        yield f"{word}\t{sum(1 for _ in group)}"
