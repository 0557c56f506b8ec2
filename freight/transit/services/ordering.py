"""
Deterministic ordering for GR numbers.

GR numbers are split into (letters)(digits)(remainder) so that a series
like A9, A10, B1 sorts with the digit run compared as a number.
"""

import re
from functools import cmp_to_key
from typing import Any, Dict, Iterable, List, Optional

GR_PATTERN = re.compile(r'^([A-Za-z]*)(\d+)(.*)$')


def _cmp(a, b) -> int:
    return (a > b) - (a < b)


def compare_gr_numbers(gr_a: Optional[str], gr_b: Optional[str]) -> int:
    """
    Three-way comparison of two GR numbers.

    Identifiers without a digit run sort after well-formed ones and are
    compared lexically among themselves. Numeric-only identifiers have an
    empty letter prefix and therefore sort before prefixed ones.
    """
    gr_a = gr_a or ''
    gr_b = gr_b or ''

    match_a = GR_PATTERN.match(gr_a)
    match_b = GR_PATTERN.match(gr_b)

    if not match_a and not match_b:
        return _cmp(gr_a, gr_b)
    if not match_a:
        return 1
    if not match_b:
        return -1

    prefix_a, number_a, suffix_a = match_a.groups()
    prefix_b, number_b, suffix_b = match_b.groups()

    result = _cmp(prefix_a, prefix_b)
    if result:
        return result

    result = _cmp(int(number_a), int(number_b))
    if result:
        return result

    return _cmp(suffix_a, suffix_b)


gr_sort_key = cmp_to_key(compare_gr_numbers)


def sort_gr_numbers(gr_nos: Iterable[str]) -> List[str]:
    return sorted(gr_nos, key=gr_sort_key)


def sort_by_gr_number(items: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Sort shipment dicts by their 'gr_no'."""
    return sorted(items, key=lambda item: gr_sort_key(item.get('gr_no')))


def sort_by_destination_city(items: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Sort shipment dicts by destination city name, then by GR number."""
    return sorted(
        items,
        key=lambda item: (
            (item.get('to_city_name') or '').upper(),
            gr_sort_key(item.get('gr_no')),
        )
    )
