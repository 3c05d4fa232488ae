"""Tests for chunker."""

import pytest

from doctalk.ingest.chunker import RecursiveTextSplitter, chunk_document, locate_pages
from doctalk.ingest.extractors import join_pages
from doctalk.ingest.types import DocumentMetadata, PageOffset

META = DocumentMetadata(
    file_id="file-1",
    file_name="notes.pdf",
    file_url="https://drive.google.com/file/d/file-1/view",
    mime_type="application/pdf",
    folder_id="folder1234567",
)


def test_split_on_paragraphs(sample_text: str) -> None:
    splitter = RecursiveTextSplitter(chunk_size=20, chunk_overlap=0)
    assert splitter.split(sample_text) == ["First paragraph.", "Second paragraph.", "Third paragraph."]


def test_character_fallback() -> None:
    splitter = RecursiveTextSplitter(chunk_size=10, chunk_overlap=0, separators=[""])
    chunks = splitter.split("abcdefghijklmnop")
    assert chunks == ["abcdefghij", "klmnop"]
    assert "".join(chunks) == "abcdefghijklmnop"


def test_empty_and_whitespace_input() -> None:
    splitter = RecursiveTextSplitter(chunk_size=10, chunk_overlap=2)
    assert splitter.split("") == []
    assert splitter.split("   \n\n  ") == []


def test_short_input_is_unchanged() -> None:
    splitter = RecursiveTextSplitter(chunk_size=100, chunk_overlap=10)
    assert splitter.split("  short text  ") == ["  short text  "]


def test_chunks_bounded_and_non_empty() -> None:
    text = "\n\n".join(
        f"Paragraph {n}. " + " ".join(f"word{n}_{m}" for m in range(n * 7 % 40 + 3)) for n in range(30)
    )
    splitter = RecursiveTextSplitter(chunk_size=120, chunk_overlap=20)
    chunks = splitter.split(text)
    assert len(chunks) > 1
    assert all(len(chunk) <= 120 for chunk in chunks)
    assert all(chunk.strip() for chunk in chunks)


def test_overlap_prepends_previous_tail() -> None:
    splitter = RecursiveTextSplitter(chunk_size=30, chunk_overlap=5)
    chunks = splitter.split("aaaa aaaa.\n\nbbbb bbbb.\n\ncccc cccc.")
    assert chunks == ["aaaa aaaa.\n\nbbbb bbbb.", "bbbb.cccc cccc."]


def test_overlap_dropped_when_it_would_exceed_size() -> None:
    splitter = RecursiveTextSplitter(chunk_size=10, chunk_overlap=5, separators=[""])
    assert splitter.split("abcdefghijklmnopqrst") == ["abcdefghij", "klmnopqrst"]


def test_invalid_chunk_size() -> None:
    with pytest.raises(ValueError):
        RecursiveTextSplitter(chunk_size=0, chunk_overlap=0)
    with pytest.raises(ValueError):
        RecursiveTextSplitter(chunk_size=10, chunk_overlap=-1)


def test_chunk_document_ids_and_indices(sample_text: str) -> None:
    splitter = RecursiveTextSplitter(chunk_size=20, chunk_overlap=0)
    chunks = chunk_document(sample_text, META, splitter=splitter)
    assert [chunk.id for chunk in chunks] == ["file-1:0", "file-1:1", "file-1:2"]
    assert [chunk.metadata.chunk_index for chunk in chunks] == [0, 1, 2]
    assert {chunk.metadata.total_chunks for chunk in chunks} == {3}
    assert all(chunk.metadata.page_numbers is None for chunk in chunks)
    assert chunks[0].metadata.folder_id == "folder1234567"


def test_chunk_document_ids_are_stable(sample_text: str) -> None:
    splitter = RecursiveTextSplitter(chunk_size=20, chunk_overlap=0)
    first = chunk_document(sample_text, META, splitter=splitter)
    second = chunk_document(sample_text, META, splitter=splitter)
    assert [(c.id, c.text) for c in first] == [(c.id, c.text) for c in second]


def test_page_attribution_per_page() -> None:
    text, offsets = join_pages([(1, "First page sentence one."), (2, "Second page sentence two.")])
    chunks = chunk_document(
        text,
        META,
        splitter=RecursiveTextSplitter(chunk_size=30, chunk_overlap=0),
        page_offsets=offsets,
    )
    assert [chunk.metadata.page_numbers for chunk in chunks] == [[1], [2]]
    assert chunks[1].metadata.page_number == 2


def test_page_attribution_spanning_chunk() -> None:
    text, offsets = join_pages([(1, "First page sentence one."), (2, "Second page sentence two.")])
    chunks = chunk_document(
        text,
        META,
        splitter=RecursiveTextSplitter(chunk_size=100, chunk_overlap=0),
        page_offsets=offsets,
    )
    assert len(chunks) == 1
    assert chunks[0].metadata.page_numbers == [1, 2]
    assert chunks[0].metadata.page_number == 1


def test_locate_pages_unfound_prefix_is_none() -> None:
    offsets = [PageOffset(page_number=1, start_offset=0)]
    assert locate_pages("hello world", ["missing"], offsets) == [None]


def test_locate_pages_text_before_first_offset() -> None:
    offsets = [PageOffset(page_number=3, start_offset=5), PageOffset(page_number=4, start_offset=50)]
    assert locate_pages("intro and more text", ["intro"], offsets) == [[3]]


def test_join_pages_trims_leading_whitespace() -> None:
    text, offsets = join_pages([(1, "  \nAlpha"), (2, "Beta")])
    assert text == "Alpha\n\nBeta"
    assert offsets[0].start_offset == 0
    assert text[offsets[1].start_offset :] == "Beta"


def test_non_whitespace_content_preserved_in_order() -> None:
    text = "\n\n".join(" ".join(f"tok{n}x{m}" for m in range(n % 9 + 4)) for n in range(25))
    chunks = RecursiveTextSplitter(chunk_size=50, chunk_overlap=0).split(text)
    assert "".join("".join(chunks).split()) == "".join(text.split())


def test_splitting_is_deterministic() -> None:
    text = "lorem ipsum dolor sit amet " * 40
    splitter = RecursiveTextSplitter(chunk_size=64, chunk_overlap=16)
    assert splitter.split(text) == splitter.split(text)


def test_page_attribution_with_short_overlap() -> None:
    text, offsets = join_pages([(1, "aaaa aaaa."), (2, "bbbb bbbb."), (3, "cccc cccc.")])
    chunks = chunk_document(
        text,
        META,
        splitter=RecursiveTextSplitter(chunk_size=12, chunk_overlap=2),
        page_offsets=offsets,
    )
    assert [chunk.text for chunk in chunks] == ["aaaa aaaa.", "a.bbbb bbbb.", "b.cccc cccc."]
    assert [chunk.metadata.page_numbers for chunk in chunks] == [[1], [2], [3]]


def test_page_attribution_with_overlap_across_long_pages() -> None:
    pages = [(n, " ".join(f"page{n}word{m}" for m in range(30))) for n in range(1, 4)]
    text, offsets = join_pages(pages)
    chunks = chunk_document(
        text,
        META,
        splitter=RecursiveTextSplitter(chunk_size=120, chunk_overlap=20),
        page_offsets=offsets,
    )
    assert len(chunks) > 3
    assert all(chunk.metadata.page_numbers for chunk in chunks)
    firsts = [chunk.metadata.page_number for chunk in chunks]
    assert firsts == sorted(firsts)
    assert firsts[-1] == 3


def test_sentence_separator_is_consumed_at_boundary() -> None:
    splitter = RecursiveTextSplitter(chunk_size=20, chunk_overlap=0, separators=[". ", ""])
    assert splitter.split("Alpha beta gamma. Delta epsilon zeta.") == ["Alpha beta gamma", "Delta epsilon zeta."]
