import json

from docchat.ingest.keywords import (
    KeywordExtractor,
    SynonymDictionary,
    classify_document,
    load_synonym_dictionary,
    title_from_filename,
)


def test_extracts_hangul_latin_and_article_tokens() -> None:
    keywords = KeywordExtractor().extract("제12조 개인정보 처리방침 Privacy Act 및 The data")

    assert "제12조" in keywords
    assert "개인정보" in keywords
    assert "처리방침" in keywords
    assert "Privacy" in keywords
    assert "The" in keywords
    assert "Act" in keywords
    assert "data" not in keywords
    assert "및" not in keywords


def test_common_words_are_dropped() -> None:
    keywords = KeywordExtractor().extract("것으로 것에서는 부터 까지")

    assert keywords == frozenset()


def test_dictionary_adds_base_term_for_matched_synonyms() -> None:
    dictionary = SynonymDictionary.from_mapping(
        {
            "keywords": ["정보주체"],
            "synonymMappings": {"개인정보": ["personal data", "PII"]},
        }
    )

    keywords = KeywordExtractor(dictionary).extract("handling of personal data by 정보주체")

    assert "개인정보" in keywords
    assert "personal data" in keywords
    assert "PII" not in keywords
    assert "정보주체" in keywords


def test_load_synonym_dictionary_reads_json(tmp_path) -> None:
    path = tmp_path / "dictionary.json"
    path.write_text(
        json.dumps({"keywords": ["동의"], "synonymMappings": {"동의": ["consent"]}}, ensure_ascii=False),
        encoding="utf-8",
    )

    dictionary = load_synonym_dictionary(path)

    assert dictionary is not None
    assert dictionary.keywords == ("동의",)
    assert dictionary.synonym_mappings == {"동의": ("consent",)}


def test_load_synonym_dictionary_tolerates_missing_or_invalid_files(tmp_path) -> None:
    invalid = tmp_path / "broken.json"
    invalid.write_text("[1, 2", encoding="utf-8")

    assert load_synonym_dictionary(None) is None
    assert load_synonym_dictionary(tmp_path / "missing.json") is None
    assert load_synonym_dictionary(invalid) is None


def test_classify_document_by_filename() -> None:
    assert classify_document("개인정보 보호법 시행령.pdf") == "법령"
    assert classify_document("가명정보 처리 가이드라인.pdf") == "지침"
    assert classify_document("annual-report.pdf") == "기타"
    assert classify_document("개인정보 보호법.pdf") == "기타"


def test_title_from_filename_strips_known_suffixes() -> None:
    assert title_from_filename("dir/개인정보 보호법.pdf") == "개인정보 보호법"
    assert title_from_filename("notes.TXT") == "notes"
    assert title_from_filename("archive.zip") == "archive.zip"
