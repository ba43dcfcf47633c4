#!/usr/bin/env python3
"""
Quick Start Guide for the Streaming XML Parser.

Shows one-shot parsing, incremental parsing of a stream that arrives in
pieces, building and rendering trees, and the YAML-flavoured JSON model.
"""

from streaming_xml_parser import (
    FeedStream,
    FormatError,
    JsonWriterOptions,
    XmlElement,
    XmlParser,
    XmlWriterOptions,
    parse_string,
)
from streaming_xml_parser.yaml_dom import YamlMapping, YamlScalar, YamlSequence
from streaming_xml_parser.yaml_dom import JsonWriterOptions as YamlJsonOptions


def one_shot_example():
    """Parse a complete string and query the tree."""
    print("\n📄 Step 1: Parsing a document")
    print("-" * 30)

    document = parse_string(
        '<book id="123" genre="fiction">'
        "<title>My Book</title><author>Jane Doe</author>"
        '<price currency="USD">19.99</price>'
        "</book>"
    )
    book = document.get_document_element()
    print(f"✅ Root element: <{book.local_name}> with id={book.get_attribute('id')}")
    print(f"📖 Title: {document.find('title').get_text_as_string()}")
    print(f"💲 Price: {document.find('price').get_text_as_string()}")

    print("\nPretty XML:")
    print(document.to_string(XmlWriterOptions(pretty_print=True)))
    print("\nJSON:")
    print(document.to_json(JsonWriterOptions(pretty_print=True)))


def streaming_example():
    """Feed bytes as they arrive and collect each completed document."""
    print("\n🌊 Step 2: Incremental parsing")
    print("-" * 30)

    chunks = [b"<event n='1'>st", b"art</event>\n<ev", b"ent n='2'>stop</event>"]
    stream = FeedStream()
    parser = XmlParser()
    parser.start_source("events.xml")

    for chunk in chunks:
        stream.feed(chunk)
        while True:
            document = parser.partial_parse(stream)
            if document is None:
                break
            event = document.get_document_element()
            print(f"✅ Event {event.get_attribute('n')}: {event.get_text_as_string()}"
                  f" ({event.source_location})")
    stream.close()
    parser.partial_parse(stream)
    parser.finish_source()
    print(f"📊 Documents completed: {parser.statistics.documents_completed}")


def building_example():
    """Build a tree in code and render it."""
    print("\n🔧 Step 3: Building a tree")
    print("-" * 30)

    catalog = XmlElement("catalog")
    catalog.set_attribute("version", "2")
    catalog.add_text_element("item", "first")
    catalog.add_text_element("item", "second")
    print(catalog.to_string())
    print(catalog.to_json())


def error_example():
    """Show the location reported for malformed input."""
    print("\n⚠️  Step 4: Error reporting")
    print("-" * 30)

    try:
        parse_string("<a>\n  <b>\n</a>", source_filename="broken.xml")
    except FormatError as e:
        print(f"❌ {e}")


def yaml_example():
    """Render a YAML-flavoured tree as JSON."""
    print("\n🧾 Step 5: YAML model to JSON")
    print("-" * 30)

    ports = YamlSequence("config.yaml:3", [YamlScalar("config.yaml:3", "80"), None])
    mapping = YamlMapping("config.yaml:1")
    mapping.add(YamlScalar("config.yaml:1", "name"), YamlScalar("config.yaml:1", "web"))
    mapping.add(YamlScalar("config.yaml:2", "ports"), ports)
    print(mapping.to_json(YamlJsonOptions(unquote_numbers=True)))


def main():
    """Run all quick start examples."""
    print("🚀 QUICK START - Streaming XML Parser")
    print("=" * 45)

    one_shot_example()
    streaming_example()
    building_example()
    error_example()
    yaml_example()

    print("\n🎉 Quick start complete!")


if __name__ == "__main__":
    main()
