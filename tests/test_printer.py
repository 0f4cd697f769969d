import pytest
from lxml import etree

from axmldec import AXMLPrinter, decode, decode_file
from axmldec.errors import (
    DuplicateAttribute,
    MalformedChunk,
    ResParserError,
    StructuralMismatch,
)
from axmldec.internal_types import NO_ENTRY, TYPE_INT_BOOLEAN, TYPE_INT_DEC, TYPE_STRING

from axml_builder import ANDROID_NS, AXMLBuilder, simple_manifest

MANIFEST = (
    b'<manifest xmlns:android="http://schemas.android.com/apk/res/android" package="com.example">'
    b'<uses-sdk android:minSdkVersion="21"/>'
    b'</manifest>'
)


@pytest.mark.parametrize("utf8", [False, True])
def test_decode_manifest(utf8):
    xml = decode(simple_manifest(utf8=utf8))
    assert xml == MANIFEST

    root = etree.fromstring(xml)
    assert root.tag == "manifest"
    assert root.get("package") == "com.example"
    assert root[0].get("{%s}minSdkVersion" % ANDROID_NS) == "21"


def test_decode_is_repeatable():
    data = simple_manifest()
    assert decode(data) == decode(data)


def test_decode_file(tmp_path):
    path = tmp_path / "AndroidManifest.xml"
    path.write_bytes(simple_manifest())
    assert decode_file(path) == MANIFEST
    assert decode_file(str(path)) == MANIFEST


def test_pretty_output():
    xml = decode(simple_manifest(), pretty=True)
    assert xml.endswith(b"\n")
    assert b"\n  <uses-sdk" in xml
    parser = etree.XMLParser(remove_blank_text=True)
    assert etree.tostring(etree.fromstring(xml, parser)) == MANIFEST


def test_every_truncation_fails():
    data = simple_manifest()
    for cut in range(len(data)):
        with pytest.raises(ResParserError):
            decode(data[:cut])


def test_namespace_scope():
    b = AXMLBuilder()
    b.start_namespace("a", "urn:a")
    b.start_element("root")
    b.start_namespace("b", "urn:b")
    b.start_element("child1", ns="urn:b").end_element("child1", ns="urn:b")
    b.end_namespace("b", "urn:b")
    b.start_element("child2", ns="urn:b").end_element("child2", ns="urn:b")
    b.end_element("root")
    b.end_namespace("a", "urn:a")

    printer = AXMLPrinter(b.build())
    assert printer.warnings == []
    root = etree.fromstring(printer.get_buff())
    assert root.nsmap == {"a": "urn:a"}
    child1, child2 = root
    assert child1.tag == "{urn:b}child1"
    assert child1.prefix == "b"
    assert child2.tag == "{urn:b}child2"
    assert child2.prefix != "b"


def test_default_namespace():
    b = AXMLBuilder()
    b.start_namespace(None, "urn:default")
    b.start_element("root", ns="urn:default").end_element("root", ns="urn:default")
    b.end_namespace(None, "urn:default")
    assert decode(b.build()) == b'<root xmlns="urn:default"/>'


def test_text_and_tail():
    b = AXMLBuilder()
    b.start_element("root")
    b.cdata("hello")
    b.start_element("child").end_element("child")
    b.cdata("tail")
    b.end_element("root")
    assert decode(b.build()) == b"<root>hello<child/>tail</root>"


def test_text_outside_of_root_is_dropped():
    b = AXMLBuilder()
    b.cdata("before")
    b.start_element("root").end_element("root")
    b.cdata("after")
    assert decode(b.build()) == b"<root/>"


def test_special_characters_are_escaped():
    b = AXMLBuilder()
    b.start_element("root", [b.attr("v", 'a<b>&"c"')])
    b.cdata("x < y & z")
    b.end_element("root")
    xml = decode(b.build())
    assert b"&lt;" in xml
    assert b"&amp;" in xml
    root = etree.fromstring(xml)
    assert root.get("v") == 'a<b>&"c"'
    assert root.text == "x < y & z"


def test_comment_is_attached_before_the_element():
    b = AXMLBuilder()
    b.start_element("root")
    b.start_element("child", comment="a -- note-").end_element("child")
    b.end_element("root")
    assert decode(b.build()) == b"<root><!--a - - note- --><child/></root>"


def test_mismatching_end_element():
    b = AXMLBuilder()
    b.start_element("root")
    b.start_element("child")
    b.end_element("other")
    b.end_element("root")
    printer = AXMLPrinter(b.build())
    # the unknown end tag is ignored, the end of root closes child as well
    assert len(printer.warnings) == 2
    assert all(isinstance(w, StructuralMismatch) for w in printer.warnings)
    assert printer.get_buff() == b"<root><child/></root>"


def test_repeated_end_element_before_a_sibling():
    b = AXMLBuilder()
    b.start_element("root")
    b.start_element("a").end_element("a")
    b.end_element("a")
    b.start_element("b").end_element("b")
    b.end_element("root")
    printer = AXMLPrinter(b.build())
    assert len(printer.warnings) == 1
    assert isinstance(printer.warnings[0], StructuralMismatch)
    assert printer.get_buff() == b"<root><a/><b/></root>"


def test_end_element_closes_up_to_its_start():
    b = AXMLBuilder()
    b.start_element("root")
    b.start_element("a")
    b.start_element("b")
    b.end_element("a")
    b.start_element("c").end_element("c")
    b.end_element("root")
    printer = AXMLPrinter(b.build())
    assert len(printer.warnings) == 1
    assert printer.get_buff() == b"<root><a><b/></a><c/></root>"


def test_too_many_end_elements():
    b = AXMLBuilder()
    b.start_element("root")
    b.end_element("root")
    b.end_element("root")
    printer = AXMLPrinter(b.build())
    assert len(printer.warnings) == 1
    assert printer.get_buff() == b"<root/>"


def test_mismatching_end_namespace():
    b = AXMLBuilder()
    b.start_namespace("p", "urn:p")
    b.start_element("root").end_element("root")
    b.end_namespace("q", "urn:q")
    b.end_namespace("p", "urn:p")
    printer = AXMLPrinter(b.build())
    assert len(printer.warnings) == 2
    assert all(isinstance(w, StructuralMismatch) for w in printer.warnings)
    assert printer.get_buff() == b'<root xmlns:p="urn:p"/>'


def test_unclosed_elements_are_closed():
    b = AXMLBuilder()
    b.start_element("root")
    b.start_element("child")
    printer = AXMLPrinter(b.build())
    assert printer.warnings == []
    assert printer.get_buff() == b"<root><child/></root>"


def test_second_root_element():
    b = AXMLBuilder()
    b.start_element("root").end_element("root")
    b.start_element("other").end_element("other")
    with pytest.raises(MalformedChunk):
        AXMLPrinter(b.build())


def test_no_root_element():
    b = AXMLBuilder()
    b.start_namespace("p", "urn:p").end_namespace("p", "urn:p")
    with pytest.raises(MalformedChunk):
        decode(b.build())


def test_duplicate_attribute_keeps_the_last_value():
    b = AXMLBuilder()
    b.start_element("root", [b.attr("a", "1"), b.attr("a", "2")]).end_element("root")
    printer = AXMLPrinter(b.build())
    assert len(printer.warnings) == 1
    assert isinstance(printer.warnings[0], DuplicateAttribute)
    assert not isinstance(printer.warnings[0], StructuralMismatch)
    assert printer.get_buff() == b'<root a="2"/>'


def test_raw_value_is_preferred_for_strings():
    b = AXMLBuilder()
    attrs = [
        (NO_ENTRY, b.string("s"), b.string("raw"), TYPE_STRING, b.string("data")),
        (NO_ENTRY, b.string("i"), b.string("abc"), TYPE_INT_DEC, 5),
        (NO_ENTRY, b.string("t"), NO_ENTRY, TYPE_STRING, b.string("data")),
    ]
    b.start_element("root", attrs).end_element("root")
    root = AXMLPrinter(b.build()).get_xml_obj()
    assert root.get("s") == "raw"
    assert root.get("i") == "5"
    assert root.get("t") == "data"


def test_framework_attribute_without_namespace():
    b = AXMLBuilder(resources=[("minSdkVersion", 0x0101020C)])
    b.start_element("uses-sdk", [b.attr("minSdkVersion", 21)]).end_element("uses-sdk")
    xml = decode(b.build())
    assert xml == b'<uses-sdk xmlns:android="%s" android:minSdkVersion="21"/>' % ANDROID_NS.encode()


def test_framework_name_wins_over_string_pool():
    b = AXMLBuilder(resources=[("obfuscated", 0x01010003)])
    b.start_namespace("android", ANDROID_NS)
    b.start_element("activity", [b.attr("obfuscated", ".Main", ns=ANDROID_NS)])
    b.end_element("activity")
    b.end_namespace("android", ANDROID_NS)
    printer = AXMLPrinter(b.build())
    assert printer.get_xml_obj().get("{%s}name" % ANDROID_NS) == ".Main"
    assert printer.is_packed()


def test_unknown_framework_attribute():
    b = AXMLBuilder(resources=[("", 0x0101FFFF)])
    b.start_element("root", [b.attr("", 1, value_type=TYPE_INT_BOOLEAN)]).end_element("root")
    printer = AXMLPrinter(b.build())
    root = printer.get_xml_obj()
    assert root.get("{%s}UNKNOWN_SYSTEM_ATTRIBUTE_0101ffff" % ANDROID_NS) == "true"
    assert printer.is_packed()


def test_prefix_inside_of_the_name():
    b = AXMLBuilder()
    b.start_namespace("android", ANDROID_NS)
    b.start_element("root", [b.attr("android:label", "x")]).end_element("root")
    b.end_namespace("android", ANDROID_NS)
    printer = AXMLPrinter(b.build())
    assert printer.get_xml_obj().get("{%s}label" % ANDROID_NS) == "x"
    assert printer.is_packed()


@pytest.mark.parametrize("name, fixed", [
    ("1st", "_1st"),
    ("a b", "a_b"),
    ("", "_"),
    ("xmlns", "_xmlns"),
])
def test_invalid_names_are_repaired(name, fixed):
    b = AXMLBuilder()
    b.start_element(name).end_element(name)
    printer = AXMLPrinter(b.build())
    assert printer.get_xml_obj().tag == fixed
    assert printer.is_packed()


@pytest.mark.parametrize("value, fixed", [
    ("ab\x00cd", "ab"),
    ("a\x01b", "a_b"),
])
def test_invalid_values_are_repaired(value, fixed):
    b = AXMLBuilder()
    b.start_element("root", [b.attr("v", value)]).end_element("root")
    printer = AXMLPrinter(b.build())
    assert printer.get_xml_obj().get("v") == fixed
    assert printer.is_packed()


def test_clean_manifest_is_not_packed():
    printer = AXMLPrinter(simple_manifest())
    assert not printer.is_packed()
    assert printer.warnings == []


def test_xmlns_attribute_is_not_a_declaration():
    b = AXMLBuilder()
    b.start_element("root", [b.attr("xmlns", "urn:x")]).end_element("root")
    printer = AXMLPrinter(b.build())
    assert printer.get_buff() == b'<root _xmlns="urn:x"/>'
    root = etree.fromstring(printer.get_buff())
    assert root.tag == "root"
    assert printer.is_packed()


def test_namespace_uri_with_invalid_characters():
    b = AXMLBuilder()
    b.start_namespace("p", "urn:a b")
    b.start_element("root", [b.attr("x", "1", ns="urn:a b")], ns="urn:a b")
    b.end_element("root", ns="urn:a b")
    b.end_namespace("p", "urn:a b")
    printer = AXMLPrinter(b.build())
    assert printer.get_buff() == b'<p:root xmlns:p="urn:a_b" p:x="1"/>'
    assert printer.is_packed()


def test_namespace_uri_is_stripped_everywhere():
    b = AXMLBuilder()
    b.start_namespace("p", "urn:a ")
    b.start_element("root", ns="urn:a ").end_element("root", ns="urn:a ")
    b.end_namespace("p", "urn:a ")
    printer = AXMLPrinter(b.build())
    assert printer.get_buff() == b'<p:root xmlns:p="urn:a"/>'
    assert printer.get_xml_obj().tag == "{urn:a}root"
