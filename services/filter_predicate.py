"""
Filter predicate deciding which hazard records are drawn on the map
"""
from typing import Iterable, List

from models.model import FilterState, HazardRecord


def _fold(value: str) -> str:
    return value.strip().casefold()


def risk_matches(record: HazardRecord, filter_state: FilterState) -> bool:
    """Classification membership, case-insensitive on both sides"""
    wanted = {_fold(level) for level in filter_state.risk_levels}
    return _fold(record.risk_level) in wanted


def text_matches(record: HazardRecord, filter_state: FilterState) -> bool:
    """Case-insensitive substring search on the lake name; empty query matches all"""
    query = filter_state.search_query
    if not query:
        return True
    return query.casefold() in record.lake_name.casefold()


def year_matches(record: HazardRecord, filter_state: FilterState) -> bool:
    """Observation year within the inclusive range; undated records pass"""
    if filter_state.year_range is None:
        return True
    year = record.observation_year
    if year is None:
        return True
    start, end = filter_state.year_range
    return start <= year <= end


def matches(record: HazardRecord, filter_state: FilterState) -> bool:
    return (
        risk_matches(record, filter_state)
        and text_matches(record, filter_state)
        and year_matches(record, filter_state)
    )


def filter_records(records: Iterable[HazardRecord], filter_state: FilterState) -> List[HazardRecord]:
    """Records passing the filter, in input order"""
    return [record for record in records if matches(record, filter_state)]
