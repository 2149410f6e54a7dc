"""
ZJSON helper tests

Identifier validation, node classification, and tree traversal.
"""

import pytest

from zettelpresenter.lib import zjson
from zettelpresenter.lib.zjson import ZettelID, zid_fromRef

from builders import embed, heading, link, mermaid, para, text


class TestZettelID:
    """Identifier validity"""

    @pytest.mark.parametrize("zid", ["20230101120000", "00000000000001", "99999999999999"])
    def test_valid(self, zid):
        assert ZettelID(zid).is_valid()

    @pytest.mark.parametrize(
        "zid",
        ["", "00000000000000", "2023010112000", "202301011200000", "2023010112000a", "２０２３０１０１１２００００"],
    )
    def test_invalid(self, zid):
        assert not ZettelID(zid).is_valid()

    def test_invalid_constant(self):
        assert not ZettelID.INVALID.is_valid()

    def test_fragment_stripped(self):
        """Links may carry a fragment or query"""
        assert zid_fromRef("20230101120000#intro") == "20230101120000"
        assert zid_fromRef("20230101120000?part=meta") == "20230101120000"
        assert zid_fromRef("20230101120000").is_valid()


class TestAccessors:
    """Type-safe field access"""

    def test_number_as_string(self):
        """Heading levels arrive as string from some encoders"""
        assert zjson.number_get({"n": "2"}) == 2
        assert zjson.number_get({"n": 3}) == 3
        assert zjson.number_get({"n": "x"}) is None
        assert zjson.number_get({}) is None

    def test_wrong_types_yield_empty(self):
        obj = {"s": 1, "i": "not a list", "a": []}
        assert zjson.string_get(obj, "s") == ""
        assert zjson.array_get(obj, "i") == []
        assert zjson.attributes_get(obj) == {}

    def test_text_make(self):
        assert zjson.text_make("Hi") == [{"": "Text", "s": "Hi"}]


class TestClassify:
    """Closed node classification"""

    def test_heading(self):
        node = zjson.node_classify(heading(1, text("Intro")))
        assert isinstance(node, zjson.HeadingNode)
        assert node.level == 1
        assert node.inline == [text("Intro")]

    def test_heading_without_level_is_plain_block(self):
        node = zjson.node_classify({"": "Heading", "i": [text("x")]})
        assert isinstance(node, zjson.BlockNode)

    def test_link(self):
        node = zjson.node_classify(link("20230101120000", "see"))
        assert isinstance(node, zjson.LinkNode)
        assert node.ref == "20230101120000"
        assert node.state == zjson.REF_STATE_ZETTEL

    def test_embed(self):
        node = zjson.node_classify(embed("20230101120000", "svg"))
        assert isinstance(node, zjson.EmbedNode)
        assert node.syntax == "svg"

    def test_diagram(self):
        node = zjson.node_classify(mermaid("graph TD;"))
        assert isinstance(node, zjson.DiagramNode)
        assert node.syntax == "mermaid"
        assert node.text == "graph TD;"

    def test_other_and_non_objects(self):
        assert isinstance(zjson.node_classify(para(text("x"))), zjson.BlockNode)
        assert zjson.node_classify("text") is None
        assert zjson.node_classify([]) is None


class TestIterate:
    """Non-recursive traversal"""

    def test_document_order(self):
        content = [
            para(text("a"), link("20230101120000", "b")),
            heading(2, text("c")),
        ]
        kinds = [zjson.type_get(obj) for obj in zjson.nodes_iterate(content)]
        assert kinds == ["Para", "Text", "Link", "Text", "Heading", "Text"]

    def test_nested_lists_and_tables(self):
        """List items and table cells are arrays of arrays"""
        content = [
            {"": "Bullet", "c": [[para(text("one"))], [para(link("20230101120000"))]]},
            {"": "Table", "p": [[], [[{"i": [embed("20230101129900")]}]]]},
        ]
        kinds = [zjson.type_get(obj) for obj in zjson.nodes_iterate(content)]
        assert "Link" in kinds
        assert "Embed" in kinds

    def test_deep_nesting(self):
        """Nesting far beyond the recursion limit is fine"""
        depth = 5000
        content = [para(text("leaf"))]
        for _ in range(depth):
            content = [{"": "Block", "b": content}]
        objects = list(zjson.nodes_iterate(content))
        assert len(objects) == depth + 2
        assert zjson.type_get(objects[-1]) == "Text"
