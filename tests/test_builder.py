"""
Tests for the Form-XObject layout builder.
"""

import pytest

from pdf_composer.embed import EmbedLayoutBuilder, PdfEmbedder
from pdf_composer.layout import EmbedOptions, SinglePage
from pdf_composer.objects import Name, Reference, parse_stream
from pdf_composer.transform import Transform

from .conftest import add_page


@pytest.fixture
def builder(sized_document, courier_document):
    embedder = PdfEmbedder()
    embedder.add_document(sized_document, "sized")
    embedder.add_document(courier_document, "courier")
    return EmbedLayoutBuilder(embedder)


def operators(operations):
    return [operation.operator for operation in operations]


class TestEmbedLayoutBuilder:
    """Collecting embeds and drawing them on pages."""

    def test_thumbnail_gallery(self, builder, target_document):
        """The gallery is wrapped in one translated graphics state."""
        builder.create_thumbnail_gallery(target_document, "sized", 50, 60, 40, 40, columns=2)
        operations, resources = builder.build()
        assert operators(operations[:2]) == ["q", "cm"]
        assert Transform.from_matrix(operations[1].operands) == Transform.translate(50, 60)
        assert operations[-1].operator == "Q"
        assert operators(operations).count("Do") == 3
        assert sorted(resources["XObject"]) == ["XO0", "XO1", "XO2"]

    def test_comparison(self, builder, target_document):
        """Two pages are fitted side by side."""
        builder.create_comparison(target_document, "sized", "courier", 10, 20, 50, 50, gap=5)
        operations, resources = builder.build()
        assert operators(operations) == ["q", "cm", "Do", "Q"] * 2
        left = Transform.from_matrix(operations[1].operands)
        right = Transform.from_matrix(operations[5].operands)
        assert left.apply(0, 0) == pytest.approx((10, 20))
        assert left.a == pytest.approx(0.25)
        assert right.apply(0, 0) == pytest.approx((65, 20))
        assert right.a == pytest.approx(0.5)
        assert len(resources["XObject"]) == 2

    def test_build_returns_copies(self, builder, target_document):
        """Changing build() output does not affect the builder."""
        builder.add_embedded_pdf(target_document, "courier", EmbedOptions())
        operations, resources = builder.build()
        operations.clear()
        resources["XObject"].clear()
        operations, resources = builder.build()
        assert operations
        assert resources["XObject"]

    def test_apply_to_new_page(self, builder, target_document):
        """A new page draws the collected operations."""
        builder.add_embedded_pdf(target_document, "courier", EmbedOptions(layout=SinglePage(10, 10)))
        page_id = builder.apply_to_new_page(target_document, 200, 300)
        page = target_document.page(page_id)
        assert page["MediaBox"] == [0, 0, 200, 300]
        (content,) = page["Contents"]
        assert operators(parse_stream(target_document.get(content.id))) == ["q", "q", "cm", "Do", "Q", "Q"]
        assert isinstance(page["Resources"]["XObject"]["XO0"], Reference)
        assert target_document.page_ids() == [page_id]

    def test_apply_to_page_reconciles_names(self, builder, target_document):
        """Names already used by the page are not overwritten."""
        image_id = target_document.add_object({"Subtype": Name("Image")})
        page_id = add_page(target_document, content=b"/XO0 Do\n", resources={"XObject": {"XO0": Reference(image_id)}})
        original = target_document.page(page_id)["Contents"]

        builder.add_embedded_pdf(target_document, "courier", EmbedOptions())
        builder.apply_to_page(target_document, page_id)

        page = target_document.page(page_id)
        xobjects = page["Resources"]["XObject"]
        assert xobjects["XO0"] == Reference(image_id)
        assert "XO0_1" in xobjects
        contents = page["Contents"]
        assert contents[1] == original
        drawn = parse_stream(target_document.get(contents[-1].id))
        assert [o.operands[0] for o in drawn if o.operator == "Do"] == [Name("XO0_1")]

    def test_clear(self, builder, target_document):
        """clear() drops everything collected."""
        builder.add_embedded_pdf(target_document, "courier", EmbedOptions())
        builder.clear()
        assert builder.build() == ([], {})
