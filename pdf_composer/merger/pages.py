"""Whole-page import for document concatenation."""

import logging
from typing import Any, Dict, List, Optional, Sequence

from ..objects.document import INHERITABLE_PAGE_KEYS, PdfDocument
from ..objects.model import ObjectId, deep_copy
from .object_merger import ObjectGraphMerger

logger = logging.getLogger(__name__)


def _inherited_attributes(source: PdfDocument, page_id: ObjectId) -> Dict[str, Any]:
    page = source.page(page_id)
    values = {}
    for key in INHERITABLE_PAGE_KEYS:
        if key in page:
            continue
        value = source.page_attribute(page_id, key)
        if value is not None:
            values[key] = deep_copy(value)
    return values


def import_pages(
    target: PdfDocument,
    source: PdfDocument,
    page_indexes: Optional[Sequence[int]] = None,
    source_tag: str = "source",
) -> List[ObjectId]:
    """Copy source pages and append them to the target page tree.

    Inherited attributes are materialized on each copied page before its
    /Parent link is dropped. A page selected more than once is appended as
    separate page objects sharing the same contents and resources.

    Args:
        target: Document receiving the pages
        source: Document providing the pages
        page_indexes: 0-based page indexes, all pages when omitted
        source_tag: Logical name of the source in the identifier map

    Returns:
        Target page identifiers in the order they were appended

    Raises:
        IndexError: If a page index is out of range
    """
    source_pages = source.page_ids()
    if page_indexes is None:
        page_indexes = range(len(source_pages))
    selected = []
    for index in page_indexes:
        if not 0 <= index < len(source_pages):
            raise IndexError(f"Page index {index} out of range (document has {len(source_pages)} pages)")
        selected.append(source_pages[index])

    inherited = {page_id: _inherited_attributes(source, page_id) for page_id in selected}

    with target.transaction():
        merger = ObjectGraphMerger(target)
        roots = list(selected)
        for values in inherited.values():
            roots.extend(merger.references_of(values, None, source_tag))
        result = merger.merge(source, roots, source_tag)

        for page_id, values in inherited.items():
            page = target.page(result.target_id(page_id))
            for key, value in values.items():
                page[key] = result.rewrite(value)

        new_pages = []
        used = set()
        for page_id in selected:
            target_id = result.target_id(page_id)
            if target_id in used:
                target_id = target.add_object(deep_copy(target.page(target_id)))
            used.add(target_id)
            new_pages.append(target_id)

        for target_id in new_pages:
            target.link_page(target_id)

    logger.debug(f"Appended {len(new_pages)} page(s) from '{source_tag}'")
    return new_pages
