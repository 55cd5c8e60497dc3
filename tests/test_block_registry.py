"""
Tests for reusable blocks, the block registry and both instance renderers.
"""

import pytest

from pdf_composer.blocks import (
    Block,
    BlockInstance,
    BlockRegistry,
    InlineInstanceRenderer,
    XObjectInstanceRenderer,
    merge_blocks,
)
from pdf_composer.config import ComposerConfig
from pdf_composer.exceptions import (
    BlockError,
    MissingBoundingBoxError,
    MissingXObjectError,
    UnknownBlockError,
)
from pdf_composer.objects import Name, Operation, PdfDocument, Reference, op, parse_stream
from pdf_composer.transform import Transform, compose

SQUARE_OPS = (Operation("re", (0, 0, 10, 10)), op("f"))
LINE_OPS = (Operation("m", (0, 0)), Operation("l", (5, 5)), op("S"))


@pytest.fixture
def registry():
    registry = BlockRegistry()
    registry.register(Block.from_size("square", SQUARE_OPS, 10, 10))
    registry.register(Block("line", LINE_OPS, (0, 0, 5, 5)))
    return registry


@pytest.fixture
def document():
    return PdfDocument.new()


def split_instances(operations):
    """Split a flat q ... Q sequence into per-instance groups."""
    groups, current, depth = [], [], 0
    for operation in operations:
        current.append(operation)
        if operation.operator == "q":
            depth += 1
        elif operation.operator == "Q":
            depth -= 1
            if depth == 0:
                groups.append(current)
                current = []
    return groups


class TestBlock:
    """Block values."""

    def test_from_size(self):
        """from_size() spans the origin to the given size."""
        block = Block.from_size("b", SQUARE_OPS, 20, 30)
        assert block.bbox == (0.0, 0.0, 20.0, 30.0)
        assert (block.width, block.height) == (20.0, 30.0)

    def test_immutable(self):
        """Blocks are frozen; builders return copies."""
        block = Block("b", list(SQUARE_OPS))
        assert isinstance(block.operations, tuple)
        with pytest.raises(AttributeError):
            block.id = "other"
        longer = block.with_operations(LINE_OPS)
        assert len(longer.operations) == 5
        assert len(block.operations) == 2
        assert block.with_bbox(0, 0, 1, 1).bbox == (0.0, 0.0, 1.0, 1.0)
        assert block.bbox is None

    def test_merge_blocks(self):
        """Merged blocks concatenate operations and union boxes."""
        first = Block("a", SQUARE_OPS, (0, 0, 10, 10), {"Font": {"F1": 1}})
        second = Block("b", LINE_OPS, (5, -5, 20, 5), {"Font": {"F1": 2, "F2": 3}})
        merged = merge_blocks("ab", [first, second])
        assert merged.operations == SQUARE_OPS + LINE_OPS
        assert merged.bbox == (0.0, -5.0, 20.0, 10.0)
        assert merged.resources == {"Font": {"F1": 1, "F2": 3}}

    def test_merge_blocks_without_bbox(self):
        """A part without a box leaves the merged block without one."""
        merged = merge_blocks("ab", [Block("a", SQUARE_OPS, (0, 0, 1, 1)), Block("b", LINE_OPS)])
        assert merged.bbox is None

    def test_instances(self):
        """Instance constructors build the expected transforms."""
        assert BlockInstance("b").transform.is_identity()
        assert BlockInstance.at("b", 3, 4).transform == Transform.translate(3, 4)
        assert BlockInstance.at_scaled("b", 3, 4, 2).transform.to_matrix() == (2, 0, 0, 2, 3, 4)
        placed = BlockInstance.placed("b", 1, 2, 3, 4, 30)
        assert placed.transform.almost_equal(Transform.full(1, 2, 3, 4, 30))


class TestBlockRegistry:
    """Registration semantics."""

    def test_register_and_lookup(self, registry):
        """Blocks are stored by id."""
        assert registry.has("square")
        assert "line" in registry
        assert len(registry) == registry.count() == 2
        assert registry.block_ids() == ["square", "line"]
        assert registry.get("missing") is None

    def test_last_registration_wins(self, registry):
        """Re-registering an id replaces the block."""
        replacement = Block("square", LINE_OPS, (0, 0, 1, 1))
        registry.register(replacement)
        assert registry.get("square") is replacement
        assert len(registry) == 2

    def test_remove_and_clear(self, registry):
        """Blocks can be removed."""
        assert registry.remove("line").id == "line"
        assert registry.remove("line") is None
        registry.clear()
        assert len(registry) == 0


class TestInlineRendering:
    """q cm <ops> Q per instance."""

    def test_inline_sequence(self, registry):
        """Each instance wraps the block operations."""
        operations = registry.render_instances([BlockInstance.at("square", 5, 6), BlockInstance.at("line", 0, 0)])
        assert operations[:2] == [op("q"), Transform.translate(5, 6).to_operation()]
        assert tuple(operations[2:4]) == SQUARE_OPS
        assert operations[4] == op("Q")
        assert tuple(operations[7:10]) == LINE_OPS
        assert len(operations) == 11

    def test_single_instance(self, registry):
        """render_instance() is a one-element render_instances()."""
        instance = BlockInstance.at("line", 1, 1)
        assert registry.render_instance(instance) == registry.render_instances([instance])

    def test_no_instances(self, registry):
        """Zero instances render nothing."""
        assert registry.render_instances([]) == []

    def test_unknown_block(self, registry):
        """An unregistered block fails before anything is emitted."""
        with pytest.raises(UnknownBlockError) as excinfo:
            registry.render_instances([BlockInstance("square"), BlockInstance("ghost")])
        assert excinfo.value.block_id == "ghost"
        assert isinstance(excinfo.value, BlockError)

    def test_marked_content_passes_through(self):
        """Pre-tagged fragments are inlined verbatim."""
        tagged = (Operation("BDC", (Name("OC"), Name("MC0"))), op("n"), op("EMC"))
        registry = BlockRegistry()
        registry.register(Block("layer", tagged))
        operations = InlineInstanceRenderer(registry).render([BlockInstance("layer")])
        assert tuple(operations[2:5]) == tagged


class TestXObjectRendering:
    """Shared Form XObjects and q cm Do Q per instance."""

    def test_create_xobjects(self, registry, document):
        """One Form XObject per block, with the block bbox and content."""
        handles = registry.create_xobjects(document)
        assert set(handles) == {"square", "line"}
        form = document.get(handles["square"])
        assert form.dictionary["Subtype"] == "Form"
        assert form.dictionary["BBox"] == [0.0, 0.0, 10.0, 10.0]
        assert tuple(parse_stream(form)) == SQUARE_OPS

    def test_create_xobjects_idempotent(self, registry, document):
        """A second call creates nothing new."""
        first = registry.create_xobjects(document)
        count = len(document)
        assert registry.create_xobjects(document) == first
        assert len(document) == count

    def test_only_new_blocks_created(self, registry, document):
        """Blocks registered later get their XObject on the next call."""
        first = registry.create_xobjects(document)
        registry.register(Block.from_size("dot", (op("h"),), 1, 1))
        second = registry.create_xobjects(document)
        assert second["square"] == first["square"]
        assert "dot" in second

    def test_missing_bounding_box(self, registry, document):
        """Blocks without a bbox cannot become XObjects; nothing is created."""
        registry.register(Block("loose", LINE_OPS))
        before = document.object_ids()
        with pytest.raises(MissingBoundingBoxError) as excinfo:
            registry.create_xobjects(document)
        assert excinfo.value.block_id == "loose"
        assert document.object_ids() == before
        assert registry.xobject_handle("square") is None

    def test_failed_switch_keeps_handles(self, registry, document):
        """A failed call for another document leaves the current handles alone."""
        handles = registry.create_xobjects(document)
        registry.register(Block("loose", LINE_OPS))
        other = PdfDocument.new()
        with pytest.raises(MissingBoundingBoxError):
            registry.create_xobjects(other)
        assert registry.document is document
        assert registry.xobject_handle("square") == handles["square"]
        assert len(other) == len(PdfDocument.new())

    def test_switching_documents_starts_over(self, registry, document):
        """Handles are recreated in a new document."""
        registry.create_xobjects(document)
        other = PdfDocument.new()
        handles = registry.create_xobjects(other)
        assert registry.document is other
        assert isinstance(other.get(handles["square"]).dictionary, dict)

    def test_resources_copied_into_form(self, document):
        """Block resources become the form's resources."""
        font_id = document.add_object({"Type": Name("Font")})
        registry = BlockRegistry()
        registry.register(Block("text", (op("BT"), op("ET")), (0, 0, 1, 1), {"Font": {"F1": Reference(font_id)}}))
        form = document.get(registry.create_xobjects(document)["text"])
        assert form.dictionary["Resources"] == {"Font": {"F1": Reference(font_id)}}

    def test_render_and_name_reuse(self, registry, document):
        """Instances of one block share one resource name."""
        registry.create_xobjects(document)
        resources = {}
        operations = registry.render_instances_as_xobjects(
            [BlockInstance.at("square", 0, 0), BlockInstance.at("square", 20, 0), BlockInstance.at("line", 5, 5)],
            resources,
        )
        assert [o.operator for o in operations] == ["q", "cm", "Do", "Q"] * 3
        names = [o.operands[0] for o in operations if o.operator == "Do"]
        assert names == [Name("Blk0"), Name("Blk0"), Name("Blk1")]
        assert resources["XObject"] == {
            "Blk0": Reference(registry.xobject_handle("square")),
            "Blk1": Reference(registry.xobject_handle("line")),
        }

    def test_existing_binding_reused(self, registry, document):
        """A name already bound to the same XObject is reused."""
        handles = registry.create_xobjects(document)
        resources = {"XObject": {"Mine": Reference(handles["line"]), "Blk0": Reference.to(999)}}
        operations = registry.render_instances_as_xobjects(
            [BlockInstance("line"), BlockInstance("square")], resources
        )
        names = [o.operands[0] for o in operations if o.operator == "Do"]
        assert names == ["Mine", "Blk1"]
        assert resources["XObject"]["Blk0"] == Reference.to(999)

    def test_custom_prefix(self, document):
        """The name prefix comes from the configuration."""
        registry = BlockRegistry(ComposerConfig(block_xobject_prefix="Tpl"))
        registry.register(Block.from_size("a", SQUARE_OPS, 1, 1))
        registry.create_xobjects(document)
        resources = {}
        registry.render_instances_as_xobjects([BlockInstance("a")], resources)
        assert list(resources["XObject"]) == ["Tpl0"]

    def test_indirect_xobject_category_copied(self, registry, document):
        """A shared XObject dictionary is copied before a name is added."""
        registry.create_xobjects(document)
        shared_id = document.add_object({"Other": Reference.to(999)})
        resources = {"XObject": Reference(shared_id)}
        registry.render_instances_as_xobjects([BlockInstance("square")], resources)
        assert document.get(shared_id) == {"Other": Reference.to(999)}
        assert set(resources["XObject"]) == {"Other", "Blk0"}

    def test_unknown_block_no_partial_writes(self, registry, document):
        """A failing render leaves resources and document untouched."""
        registry.create_xobjects(document)
        before = document.object_ids()
        resources = {"XObject": {}}
        with pytest.raises(UnknownBlockError):
            registry.render_instances_as_xobjects([BlockInstance("square"), BlockInstance("ghost")], resources)
        assert resources == {"XObject": {}}
        assert document.object_ids() == before

    def test_xobject_not_created(self, registry):
        """Rendering before create_xobjects() is an error."""
        with pytest.raises(MissingXObjectError):
            registry.render_instances_as_xobjects([BlockInstance("square")], {})

    def test_reregistration_drops_handle(self, registry, document):
        """A replaced block needs a new XObject."""
        old = registry.create_xobjects(document)["square"]
        registry.register(Block.from_size("square", LINE_OPS, 5, 5))
        assert registry.xobject_handle("square") is None
        with pytest.raises(MissingXObjectError):
            registry.render_instances_as_xobjects([BlockInstance("square")], {})
        new = registry.create_xobjects(document)["square"]
        assert new != old
        assert tuple(parse_stream(document.get(new))) == LINE_OPS

    def test_other_document_resets_handles(self, registry, document):
        """Handles belong to one document."""
        registry.create_xobjects(document)
        other = PdfDocument.new()
        handles = registry.create_xobjects(other)
        assert registry.document is other
        assert all(other.get(object_id).dictionary["Subtype"] == "Form" for object_id in handles.values())
        assert len(other) == 2 + len(handles)


class TestRenderingEquivalence:
    """Inline and XObject output draw the same thing."""

    def test_same_net_transform_and_operators(self, registry, document):
        """Each instance reaches the same operators under the same CTM."""
        instances = [
            BlockInstance.at("square", 10, 20),
            BlockInstance.placed("line", 50, 60, 2, 0.5, 30),
            BlockInstance.at_scaled("square", -5, 5, 3),
        ]
        inline = split_instances(InlineInstanceRenderer(registry).render(instances))

        registry.create_xobjects(document)
        resources = {}
        shared = split_instances(XObjectInstanceRenderer(registry, resources).render(instances))

        assert len(inline) == len(shared) == len(instances)
        for instance, inline_group, shared_group in zip(instances, inline, shared):
            inline_ctm = Transform.from_matrix(inline_group[1].operands)
            shared_ctm = Transform.from_matrix(shared_group[1].operands)
            name = shared_group[2].operands[0]
            form = document.resolve(resources["XObject"][name])
            form_matrix = Transform.from_matrix(form.dictionary.get("Matrix", (1, 0, 0, 1, 0, 0)))

            assert compose(form_matrix, shared_ctm).almost_equal(inline_ctm)
            assert inline_ctm.almost_equal(instance.transform)
            assert tuple(parse_stream(form)) == tuple(inline_group[2:-1])
            assert registry.get(instance.block_id).operations == tuple(inline_group[2:-1])
