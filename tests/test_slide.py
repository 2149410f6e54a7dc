"""
Slide and SlideInfo tests

Role matching, splitting at level-1 headings, and zettel lookup along the
document sequence.
"""

from zettelpresenter.lib.slide import Slide, SlideArena
from zettelpresenter.lib.zjson import ZettelID

from builders import ZID_A, ZID_B, ZID_C, heading, para, text


def slide_make(zid=ZID_A, role="", content=None, title="T"):
    return Slide(zid=ZettelID(zid), title=[text(title)], role=role, content=content or [])


class TestSlideCreation:
    """Slides built from metadata"""

    def test_slide_title_preferred(self):
        sl = Slide.meta_create(ZID_A, {"title": "Zettel", "slide-title": "Slide"}, [])
        assert sl.title == [text("Slide")]

    def test_title_fallback_to_zid(self):
        sl = Slide.meta_create(ZID_A, {"lang": "de"}, [])
        assert sl.title == [text(ZID_A)]
        assert sl.lang == "de"

    def test_inline_title_kept(self):
        title = [text("Rich"), {"": "Space"}, text("title")]
        sl = Slide.meta_create(ZID_A, {"title": title}, [])
        assert sl.title == title

    def test_default_role_only_when_unset(self):
        assert Slide.meta_create(ZID_A, {"title": "x"}, [], role="handout").role == "handout"
        assert Slide.meta_create(ZID_A, {"title": "x", "slide-role": "show"}, [], role="handout").role == "show"

    def test_error_slide(self):
        sl = Slide.error_create(ZID_A, "gone")
        assert sl.is_error
        assert sl.title == [text(f"Error: zettel {ZID_A}")]
        assert sl.content == [para(text("gone"))]


class TestRoleHas:
    """Role filtering"""

    def test_unset_role_matches_all(self):
        sl = slide_make(role="")
        assert sl.role_has("show")
        assert sl.role_has("handout")

    def test_set_role_matches_itself(self):
        sl = slide_make(role="show")
        assert sl.role_has("show")
        assert not sl.role_has("handout")

    def test_empty_request_matches_all(self):
        assert slide_make(role="handout").role_has("")


class TestChildrenSplit:
    """Splitting a slide at level-1 headings"""

    def test_no_heading_one_child(self):
        content = [para(text("a")), para(text("b"))]
        si = SlideArena().info_add(slide_make(content=content, title="Main"))
        si.children_split()
        children = list(si.child().chain_iterate())
        assert len(children) == 1
        assert children[0].slide.title == [text("Main")]
        assert children[0].slide.content == content
        assert si.child() is si.child_last()

    def test_split_at_level_one(self):
        content = [
            para(text("intro")),
            heading(1, text("A")),
            para(text("in A")),
            heading(2, text("sub")),
            heading(1, text("B")),
            para(text("in B")),
        ]
        si = SlideArena().info_add(slide_make(content=content, title="Main"))
        si.children_split()
        children = list(si.child().chain_iterate())
        assert [c.slide.title for c in children] == [[text("Main")], [text("A")], [text("B")]]
        assert children[0].slide.content == [para(text("intro"))]
        assert children[1].slide.content == [para(text("in A")), heading(2, text("sub"))]
        assert children[2].slide.content == [para(text("in B"))]
        assert si.children_count() == 3
        assert si.child_last() is children[2]

    def test_heading_first_gives_empty_first_child(self):
        content = [heading(1, text("A")), para(text("x"))]
        si = SlideArena().info_add(slide_make(content=content, title="Main"))
        si.children_split()
        children = list(si.child().chain_iterate())
        assert children[0].slide.content == []
        assert children[1].slide.title == [text("A")]

    def test_empty_heading_does_not_split(self):
        content = [para(text("a")), {"": "Heading", "n": 1, "i": []}, para(text("b"))]
        si = SlideArena().info_add(slide_make(content=content))
        si.children_split()
        assert si.children_count() == 1

    def test_children_inherit_slide_data(self):
        sl = Slide(zid=ZID_A, title=[text("T")], lang="fr", role="show",
                   content=[heading(1, text("A"))])
        si = SlideArena().info_add(sl)
        si.children_split()
        for child in si.child().chain_iterate():
            assert child.slide.zid == ZID_A
            assert child.slide.lang == "fr"
            assert child.slide.role == "show"


class TestSlideFind:
    """Lookup along the document sequence"""

    def chain_make(self, zids):
        arena = SlideArena()
        prev = None
        infos = []
        for zid in zids:
            prev = arena.info_add(slide_make(zid=zid), prev)
            infos.append(prev)
        return infos

    def test_self_first(self):
        infos = self.chain_make([ZID_A, ZID_B, ZID_A])
        assert infos[2].slide_find(ZID_A) is infos[2]

    def test_nearest_prior_occurrence(self):
        infos = self.chain_make([ZID_A, ZID_B, ZID_A, ZID_C])
        assert infos[3].slide_find(ZID_A) is infos[2]
        assert infos[1].slide_find(ZID_A) is infos[0]

    def test_forward_when_not_behind(self):
        infos = self.chain_make([ZID_A, ZID_B, ZID_C, ZID_B])
        assert infos[0].slide_find(ZID_B) is infos[1]
        assert infos[0].slide_find(ZID_C) is infos[2]

    def test_not_found(self):
        infos = self.chain_make([ZID_A, ZID_B])
        assert infos[0].slide_find(ZID_C) is None


class TestSlideNoRange:
    """Show numbers covered by a record"""

    def test_not_shown(self):
        si = SlideArena().info_add(slide_make())
        assert si.slideNo_range() == (0, 0)

    def test_split_range(self):
        si = SlideArena().info_add(slide_make(content=[heading(1, text("A"))]))
        si.children_split()
        si.slide_no = 4
        si.child().slide_no = 4
        si.child_last().slide_no = 5
        assert si.slideNo_range() == (4, 5)
