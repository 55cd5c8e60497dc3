"""
PDF embedding.

Loads source PDFs, merges the object graphs of selected pages into a target
document and draws them on a target page according to an
:class:`EmbedOptions` layout.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from ..config import DEFAULT_CONFIG, ComposerConfig
from ..exceptions import UnknownSourceError
from ..geometry import Rect
from ..layout.engine import LayoutEngine, LayoutResult, PagePlacement
from ..layout.options import EmbedOptions, PageRange
from ..merger.object_merger import IdentifierMap, ObjectGraphMerger
from ..merger.pages import import_pages
from ..merger.resource_merger import RenameTable, ResourceDeduplicator
from ..objects.content import (
    Operation,
    clip_rectangle,
    decode_stream_data,
    encode_operations,
    invoke_xobject,
    parse_stream,
    restore_state,
    save_state,
    set_graphics_state,
)
from ..objects.document import PdfDocument
from ..objects.loader import load_document
from ..objects.model import Name, ObjectId, Reference, Stream, deep_copy, iter_references
from ..objects.utils import decode_text_string
from ..transform import Transform

logger = logging.getLogger(__name__)

# Entries describing how the payload is encoded; dropped when re-encoding
_ENCODING_KEYS = ("Filter", "DecodeParms", "Length", "DL")


@dataclass
class EmbeddedPdfInfo:
    """Summary of a loaded source document."""

    page_count: int
    page_dimensions: List[Tuple[float, float]]
    metadata: Dict[str, str] = field(default_factory=dict)


@dataclass
class EmbedResult:
    """Outcome of drawing source pages onto a target page.

    Attributes:
        page_ids: Target pages that received content, in order
        layout: Computed placements
        identifier_map: Source-to-target identifiers of the merged objects
        renames: Resource renames applied, one table per placed page
    """

    page_ids: List[ObjectId]
    layout: LayoutResult
    identifier_map: IdentifierMap
    renames: List[RenameTable] = field(default_factory=list)


@dataclass
class XObjectEmbedResult:
    """Operations and resources for pages embedded as Form XObjects.

    The caller draws ``operations`` on a page whose resource dictionary
    contains ``resources``.
    """

    operations: List[Operation]
    resources: Dict[str, Dict[str, Any]]
    layout: LayoutResult
    identifier_map: IdentifierMap
    xobject_ids: List[ObjectId] = field(default_factory=list)

    @property
    def xobject_resources(self) -> Dict[str, Any]:
        return self.resources.get("XObject", {})


@dataclass
class _LoadedSource:
    document: PdfDocument
    info: EmbeddedPdfInfo


class PdfEmbedder:
    """Embeds pages of loaded PDFs into target documents.

    Sources are cached by identifier: loading the same path twice parses it
    once.
    """

    def __init__(self, config: Optional[ComposerConfig] = None):
        self.config = config or DEFAULT_CONFIG
        self.layout_engine = LayoutEngine()
        self._sources: Dict[str, _LoadedSource] = {}
        self._xobject_counter = 0
        self._state_counter = 0

    # Sources

    def load_pdf(self, path: Union[str, Path]) -> str:
        """Load a PDF file and return its identifier (the path)."""
        identifier = str(path)
        if identifier in self._sources:
            logger.debug(f"Using cached source '{identifier}'")
            return identifier
        return self.add_document(load_document(path, self.config), identifier)

    def load_pdf_from_bytes(self, data: bytes, identifier: str) -> str:
        if identifier in self._sources:
            logger.debug(f"Using cached source '{identifier}'")
            return identifier
        return self.add_document(load_document(data, self.config), identifier)

    def add_document(self, document: PdfDocument, identifier: str) -> str:
        """Register an in-memory document as a source."""
        self._sources[identifier] = _LoadedSource(document, self._describe(document))
        logger.info(f"Loaded source '{identifier}' ({self._sources[identifier].info.page_count} pages)")
        return identifier

    def get_pdf_info(self, identifier: str) -> Optional[EmbeddedPdfInfo]:
        loaded = self._sources.get(identifier)
        return loaded.info if loaded else None

    def source_document(self, identifier: str) -> PdfDocument:
        loaded = self._sources.get(identifier)
        if loaded is None:
            raise UnknownSourceError(identifier)
        return loaded.document

    def unload(self, identifier: str) -> bool:
        return self._sources.pop(identifier, None) is not None

    def clear_cache(self) -> None:
        self._sources.clear()

    @property
    def loaded_sources(self) -> List[str]:
        return list(self._sources)

    def _describe(self, document: PdfDocument) -> EmbeddedPdfInfo:
        page_ids = document.page_ids()
        metadata = {}
        for key, value in document.info.items():
            value = document.resolve(value)
            if isinstance(value, (bytes, str)):
                metadata[key] = decode_text_string(value)
        return EmbeddedPdfInfo(
            page_count=len(page_ids),
            page_dimensions=[document.page_size(page_id) for page_id in page_ids],
            metadata=metadata,
        )

    # Embedding

    def embed_pdf(
        self,
        target: PdfDocument,
        identifier: str,
        options: Optional[EmbedOptions] = None,
        target_page: Optional[ObjectId] = None,
    ) -> EmbedResult:
        """Draw selected source pages onto one target page.

        Each page is drawn as ``q cm <page content> Q``. The page's content
        streams are copied verbatim unless resource renames force them to be
        rewritten. Without ``target_page`` a new page sized to the layout is
        appended; otherwise the content is added on top of that page.

        Raises:
            UnknownSourceError: If ``identifier`` was never loaded
            LayoutArityError: If the layout cannot place the selected pages
            MissingObjectError: If a source page references a missing object
            UnsupportedObjectTypeError: If a stream that needs renaming cannot be decoded
        """
        options = options or EmbedOptions()
        source = self.source_document(identifier)
        page_ids, boxes, layout = self._plan(source, options)

        contents = [source.content_stream_ids(page_id) for page_id in page_ids]
        resources = [source.page_resources(page_id) for page_id in page_ids]
        stream_uses = Counter(stream_id for stream_ids in contents for stream_id in set(stream_ids))

        with target.transaction():
            merger = ObjectGraphMerger(target)
            roots = [stream_id for stream_ids in contents for stream_id in stream_ids]
            for page_resources in resources:
                roots.extend(merger.references_of(page_resources, None, identifier))
            result = merger.merge(source, roots, identifier)

            if target_page is None:
                target_resources: Dict[str, Any] = {}
                contents_refs: List[Reference] = []
            else:
                target_resources = deep_copy(target.page_resources(target_page))
                existing = [Reference(stream_id) for stream_id in target.content_stream_ids(target_page)]
                contents_refs = self.isolate(target, existing) if existing else []

            deduplicator = ResourceDeduplicator(target, self.config)
            renames = []
            pinned: Dict[ObjectId, Dict[str, Any]] = {}
            group: List[Reference] = []
            for placement, box, stream_ids, page_resources in zip(layout.placements, boxes, contents, resources):
                incoming = self.pin_inherited_resources(target, result.rewrite(page_resources), pinned)
                table = deduplicator.reconcile(target_resources, incoming)
                renames.append(table)

                stream_refs = []
                for stream_id in stream_ids:
                    target_id = result.target_id(stream_id)
                    if table:
                        target_id = self._rename_stream(
                            target, target_id, table, stream_uses[stream_id] > 1,
                            deduplicator, target_resources, incoming,
                        )
                    stream_refs.append(Reference(target_id))

                prefix = [save_state(), self._page_transform(placement, box).to_operation()]
                if options.opacity < 1.0:
                    state = deduplicator.add_entry(
                        target_resources, "ExtGState", self.config.opacity_state_prefix,
                        self._opacity_state(options.opacity),
                    )
                    prefix.append(set_graphics_state(state))
                group.append(self._content_stream(target, prefix))
                group.extend(stream_refs)
                group.append(self._content_stream(target, [restore_state()]))

            if options.clip_bounds is not None:
                x, y, width, height = options.clip_bounds
                group.insert(0, self._content_stream(target, [save_state()] + clip_rectangle(x, y, width, height)))
                group.append(self._content_stream(target, [restore_state()]))
            contents_refs.extend(group)

            # Link last
            if target_page is None:
                page_id = target.add_object({
                    "Type": Name("Page"),
                    "MediaBox": [0, 0, layout.width, layout.height],
                    "Resources": target_resources,
                    "Contents": contents_refs,
                })
                target.link_page(page_id)
            else:
                page = target.page(target_page)
                page["Resources"] = target_resources
                page["Contents"] = contents_refs
                page_id = target_page

        renamed = sum(len(table) for table in renames)
        logger.info(f"Embedded {len(page_ids)} page(s) from '{identifier}' ({renamed} resource rename(s))")
        return EmbedResult([page_id], layout, result.identifier_map, renames)

    def embed_as_xobjects(
        self,
        target: PdfDocument,
        identifier: str,
        options: Optional[EmbedOptions] = None,
    ) -> XObjectEmbedResult:
        """Import selected pages as Form XObjects and return drawing operations.

        Each page becomes a Form XObject whose BBox is the page's media box.
        Nothing is drawn; the caller adds ``resources`` to a page and appends
        ``operations`` to its content.
        """
        options = options or EmbedOptions()
        source = self.source_document(identifier)
        page_ids, boxes, layout = self._plan(source, options)
        page_resources = [source.page_resources(page_id) for page_id in page_ids]

        with target.transaction():
            merger = ObjectGraphMerger(target)
            roots = []
            for resources in page_resources:
                roots.extend(merger.references_of(resources, None, identifier))
            result = merger.merge(source, roots, identifier)

            xobject_ids = []
            pinned: Dict[ObjectId, Dict[str, Any]] = {}
            for page_id, box, resources in zip(page_ids, boxes, page_resources):
                form_resources = self.pin_inherited_resources(target, result.rewrite(resources), pinned)
                form = self._page_as_form(source, page_id, box, form_resources)
                xobject_ids.append(target.add_object(form))

        operations: List[Operation] = []
        resources_out: Dict[str, Dict[str, Any]] = {"XObject": {}}
        state_name = None
        if options.opacity < 1.0:
            state_name = f"{self.config.opacity_state_prefix}{self._state_counter}"
            self._state_counter += 1
            resources_out["ExtGState"] = {state_name: self._opacity_state(options.opacity)}

        if options.clip_bounds is not None:
            operations.append(save_state())
            operations.extend(clip_rectangle(*options.clip_bounds))
        for placement, box, xobject_id in zip(layout.placements, boxes, xobject_ids):
            name = f"{self.config.embed_xobject_prefix}{self._xobject_counter}"
            self._xobject_counter += 1
            resources_out["XObject"][name] = Reference(xobject_id)
            operations.append(save_state())
            operations.append(self._page_transform(placement, box).to_operation())
            if state_name:
                operations.append(set_graphics_state(state_name))
            operations.append(invoke_xobject(name))
            operations.append(restore_state())
        if options.clip_bounds is not None:
            operations.append(restore_state())

        logger.info(f"Embedded {len(page_ids)} page(s) from '{identifier}' as XObjects")
        return XObjectEmbedResult(operations, resources_out, layout, result.identifier_map, xobject_ids)

    def append_pages(
        self,
        target: PdfDocument,
        identifier: str,
        page_range: Optional[PageRange] = None,
    ) -> List[ObjectId]:
        """Append whole source pages to the target, unchanged."""
        source = self.source_document(identifier)
        indexes = (page_range or PageRange.all()).resolve(source.page_count())
        return import_pages(target, source, indexes, identifier)

    # Helpers

    def _plan(self, source: PdfDocument, options: EmbedOptions) -> Tuple[List[ObjectId], List[Rect], LayoutResult]:
        all_pages = source.page_ids()
        indexes = options.select_pages(len(all_pages))
        options.layout.check_arity(len(indexes))
        page_ids = [all_pages[index] for index in indexes]
        boxes = [source.media_box(page_id) for page_id in page_ids]
        layout = self.layout_engine.compute([(box.width, box.height) for box in boxes], options)
        return page_ids, boxes, layout

    @staticmethod
    def _page_transform(placement: PagePlacement, box: Rect) -> Transform:
        return Transform.translate(-box.left, -box.bottom).then(placement.transform)

    def _content_stream(self, target: PdfDocument, operations: Sequence[Operation]) -> Reference:
        data = encode_operations(operations, self.config.number_precision)
        return Reference(target.add_object(Stream({}, data)))

    def isolate(self, target: PdfDocument, refs: List[Reference]) -> List[Reference]:
        """Isolate existing page content in its own graphics state."""
        return [self._content_stream(target, [save_state()])] + refs + [self._content_stream(target, [restore_state()])]

    def pin_inherited_resources(
        self,
        target: PdfDocument,
        resources: Dict[str, Any],
        pinned: Dict[ObjectId, Dict[str, Any]],
    ) -> Dict[str, Any]:
        """Give Form XObjects without /Resources the resources of their page.

        Such forms look names up in the resources of the page that draws
        them, and those change once names are reconciled on the target page.
        ``pinned`` maps forms already pinned in this call to the resources
        they received; a form pinned with different resources is copied and
        the copy is bound in the returned dictionary instead.
        """
        xobjects = target.resolve(resources.get("XObject"))
        if not isinstance(xobjects, dict):
            return resources
        snapshot = deep_copy(resources)
        rebound = {}
        for name, value in xobjects.items():
            if not isinstance(value, Reference):
                continue
            form = target.get(value.id)
            if value.id in pinned:
                if pinned[value.id] != snapshot:
                    copy = Stream(dict(form.dictionary, Resources=snapshot), form.data)
                    rebound[name] = Reference(target.add_object(copy))
                continue
            if not (isinstance(form, Stream) and form.dictionary.get("Subtype") == "Form"):
                continue
            if "Resources" in form.dictionary:
                continue
            target.set_object(value.id, Stream(dict(form.dictionary, Resources=snapshot), form.data))
            pinned[value.id] = snapshot
            logger.debug(f"Form XObject /{name} now carries its page resources")
        if not rebound:
            return resources
        resources = dict(resources)
        resources["XObject"] = {**xobjects, **rebound}
        return resources

    def _rename_stream(
        self,
        target: PdfDocument,
        stream_id: ObjectId,
        table: RenameTable,
        shared: bool,
        deduplicator: ResourceDeduplicator,
        resources: Dict[str, Any],
        incoming: Dict[str, Any],
    ) -> ObjectId:
        stream = target.get(stream_id)
        if not isinstance(stream, Stream):
            return stream_id
        operations = table.apply(parse_stream(stream, target.resolve))
        deduplicator.verify(resources, operations, incoming, table)
        dictionary = {key: value for key, value in stream.dictionary.items() if key not in _ENCODING_KEYS}
        renamed = Stream(dictionary, encode_operations(operations, self.config.number_precision))
        if shared:
            # Another selected page draws the same stream with its own names
            return target.add_object(renamed)
        target.set_object(stream_id, renamed)
        return stream_id

    def _page_as_form(self, source: PdfDocument, page_id: ObjectId, box: Rect, resources: Dict[str, Any]) -> Stream:
        streams = [source.get(stream_id) for stream_id in source.content_stream_ids(page_id)]
        streams = [stream for stream in streams if isinstance(stream, Stream)]
        dictionary: Dict[str, Any] = {
            "Type": Name("XObject"),
            "Subtype": Name("Form"),
            "FormType": 1,
            "BBox": box.to_box(),
            "Matrix": [1, 0, 0, 1, 0, 0],
            "Resources": resources,
        }
        if len(streams) == 1:
            encoding = {key: value for key, value in streams[0].dictionary.items() if key in ("Filter", "DecodeParms")}
            if not list(iter_references(encoding)):
                # Single stream: keep the payload and its filters as they are
                dictionary.update(encoding)
                return Stream(dictionary, streams[0].data)
        data = b"\n".join(decode_stream_data(stream, source.resolve) for stream in streams)
        return Stream(dictionary, data)

    @staticmethod
    def _opacity_state(opacity: float) -> Dict[str, Any]:
        return {"Type": Name("ExtGState"), "ca": opacity, "CA": opacity}
