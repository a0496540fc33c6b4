"""Unit tests for transcript normalization.

WHY: The normalizer decides which words belong to which speaker turn
and sentence. Getting a boundary wrong shifts highlighting and hides or
duplicates text in the review view.

HOW: Tests cover each segmentation rule:
  - Speaker-index resolution
  - Empty input
  - Single-speaker and alternating-speaker streams
  - Sentence timing at terminals and at speaker changes
  - The segmenter state machine on its own
  - Word counts computed from content
  - The full Scribe sample payload

RULES:
- Floating-point comparisons use pytest.approx with default tolerance.
"""

import pytest

from scribe_compliance.api.models import MalformedPayloadError
from scribe_compliance.core.ir import StructuredTranscript, WordToken
from scribe_compliance.core.normalizer import (
    ParagraphSegmenter,
    SegmenterState,
    Trigger,
    is_sentence_terminal,
    normalize,
    normalize_payload,
    segment_paragraphs,
    speaker_index,
)


def _tokens(*items):
    return [WordToken(text=t, start=s, end=e, speaker_label=spk) for t, s, e, spk in items]


class TestSpeakerIndex:
    """Speaker labels resolve to small, stable integers."""

    @pytest.mark.parametrize("label,expected", [
        ("speaker_0", 0),
        ("A", 0),
        ("speaker_1", 1),
        ("B", 1),
        ("speaker_7", 7),
        ("spk12x3", 12),
        ("C", 0),
        ("", 0),
        (None, 0),
    ])
    def test_mapping(self, label, expected):
        assert speaker_index(label) == expected


class TestSentenceTerminal:

    @pytest.mark.parametrize("text", ["done.", "really?", "wow!", " end. "])
    def test_terminal(self, text):
        assert is_sentence_terminal(text)

    @pytest.mark.parametrize("text", ["and", "well,", " ", "e.g"])
    def test_not_terminal(self, text):
        assert not is_sentence_terminal(text)


class TestEmptyInput:

    def test_zero_tokens(self):
        result = normalize([])
        assert result == StructuredTranscript(full_text="", paragraphs=(), words=())
        assert result.duration_s == 0.0
        assert result.is_empty

    def test_absent_words_in_payload(self):
        result = normalize_payload({"text": ""})
        assert result.paragraphs == ()
        assert result.words == ()

    def test_full_text_kept_without_tokens(self):
        assert normalize([], full_text="hello").full_text == "hello"


class TestSingleSpeaker:
    """A transcript from one speaker produces exactly one paragraph."""

    def test_two_sentences_one_paragraph(self):
        tokens = _tokens(
            ("Hello.", 0.0, 0.5, "speaker_0"),
            ("World.", 0.6, 1.1, "speaker_0"),
        )
        result = normalize(tokens)
        assert len(result.paragraphs) == 1
        para = result.paragraphs[0]
        assert [s.text for s in para.sentences] == ["Hello.", "World."]
        assert para.sentences[0].end == pytest.approx(0.5)
        assert para.sentences[1].start == pytest.approx(0.6)
        assert para.sentences[1].end == pytest.approx(1.1)
        assert para.start == pytest.approx(0.0)
        assert para.end == pytest.approx(1.1)

    def test_unterminated_tail_closes_at_last_token(self):
        tokens = _tokens(
            ("So", 0.0, 0.2, "speaker_0"),
            (" then", 0.3, 0.5, "speaker_0"),
        )
        para = normalize(tokens).paragraphs[0]
        assert len(para.sentences) == 1
        assert para.sentences[0].text == "So then"
        assert para.sentences[0].start == pytest.approx(0.0)
        assert para.sentences[0].end == pytest.approx(0.5)

    def test_fragments_joined_without_separator(self):
        tokens = _tokens(
            ("Good", 0.0, 0.2, "A"),
            (" morning", 0.2, 0.5, "A"),
            ("!", 0.5, 0.55, "A"),
        )
        assert normalize(tokens).paragraphs[0].sentences[0].text == "Good morning!"


class TestSpeakerChanges:

    def test_alternating_speakers(self):
        tokens = _tokens(
            ("Hi.", 0.0, 0.4, "A"),
            ("Bye.", 0.5, 0.9, "B"),
        )
        paras = normalize(tokens).paragraphs
        assert len(paras) == 2
        assert paras[0].speaker_index == 0
        assert paras[0].sentences[0].text == "Hi."
        assert paras[1].speaker_index == 1
        assert paras[1].sentences[0].text == "Bye."

    def test_change_mid_sentence_closes_at_previous_end(self):
        tokens = _tokens(
            ("Can", 0.0, 0.2, "speaker_0"),
            (" you", 0.3, 0.5, "speaker_0"),
            ("Yes.", 0.9, 1.2, "speaker_1"),
        )
        paras = normalize(tokens).paragraphs
        assert paras[0].sentences[0].text == "Can you"
        assert paras[0].sentences[0].end == pytest.approx(0.5)
        assert paras[1].sentences[0].start == pytest.approx(0.9)

    def test_speaker_change_at_final_token(self):
        tokens = _tokens(
            ("Thanks", 0.0, 0.3, "speaker_0"),
            (" bye.", 0.3, 0.6, "speaker_0"),
            ("Bye", 0.8, 1.0, "speaker_1"),
        )
        paras = normalize(tokens).paragraphs
        assert [p.speaker_index for p in paras] == [0, 1]
        assert paras[1].sentences[0].text == "Bye"
        assert paras[1].end == pytest.approx(1.0)

    def test_returning_speaker_gets_new_paragraph(self):
        tokens = _tokens(
            ("One.", 0.0, 0.2, "speaker_0"),
            ("Two.", 0.3, 0.5, "speaker_1"),
            ("Three.", 0.6, 0.8, "speaker_0"),
        )
        assert [p.speaker_index for p in normalize(tokens).paragraphs] == [0, 1, 0]

    def test_next_sentence_starts_at_next_token(self):
        tokens = _tokens(
            ("Yes.", 0.0, 0.3, "A"),
            (" No.", 0.7, 0.9, "A"),
        )
        sentences = normalize(tokens).paragraphs[0].sentences
        assert sentences[1].start == pytest.approx(0.7)


class TestWordCount:
    """Paragraph word counts come from sentence text."""

    def test_word_count_sums_sentences(self):
        tokens = _tokens(
            ("This", 0.0, 0.1, "A"),
            (" is", 0.1, 0.2, "A"),
            (" fine.", 0.2, 0.3, "A"),
            (" Really", 0.4, 0.5, "A"),
            (" fine.", 0.5, 0.6, "A"),
        )
        assert normalize(tokens).paragraphs[0].word_count == 5

    def test_leading_spaces_not_counted(self):
        tokens = _tokens((" Hello", 0.0, 0.1, "A"), ("  there.", 0.1, 0.2, "A"))
        assert normalize(tokens).paragraphs[0].word_count == 2


class TestWords:

    def test_one_word_per_token_with_speaker_index(self):
        tokens = _tokens(
            ("Hi.", 0.0, 0.4, "speaker_0"),
            ("Hello.", 0.5, 0.9, "speaker_3"),
        )
        words = normalize(tokens).words
        assert [(w.text, w.speaker_index) for w in words] == [("Hi.", 0), ("Hello.", 3)]

    def test_word_and_paragraph_indices_agree(self):
        tokens = _tokens(
            ("Hi.", 0.0, 0.4, "B"),
            ("Yo.", 0.5, 0.9, "speaker_2"),
        )
        result = normalize(tokens)
        assert [p.speaker_index for p in result.paragraphs] == [w.speaker_index for w in result.words]


class TestParagraphSegmenter:
    """The state machine can be driven one trigger at a time."""

    def test_initial_state(self):
        segmenter = ParagraphSegmenter()
        assert segmenter.state == SegmenterState.IN_PARAGRAPH
        assert segmenter.current_speaker == "speaker_0"

    def test_feed_enters_sentence(self):
        first = WordToken("Well", 0.0, 0.2, "A")
        segmenter = ParagraphSegmenter(first)
        segmenter.feed(first)
        assert segmenter.state == SegmenterState.IN_SENTENCE

    def test_terminal_returns_to_paragraph(self):
        first = WordToken("Done.", 0.0, 0.2, "A")
        segmenter = ParagraphSegmenter(first)
        segmenter.feed(first)
        assert segmenter.state == SegmenterState.IN_PARAGRAPH
        assert [s.text for s in segmenter.pending_sentences] == ["Done."]
        assert segmenter.paragraphs == []

    def test_speaker_changed_trigger_emits_paragraph(self):
        first = WordToken("Done.", 0.0, 0.2, "A")
        segmenter = ParagraphSegmenter(first)
        segmenter.feed(first)
        segmenter.fire(Trigger.SPEAKER_CHANGED, WordToken("Ok", 0.3, 0.4, "B"))
        assert len(segmenter.paragraphs) == 1
        assert segmenter.current_speaker == "B"
        assert segmenter.pending_sentences == ()

    def test_end_of_input_flushes(self):
        first = WordToken("Half", 0.0, 0.2, "A")
        segmenter = ParagraphSegmenter(first)
        segmenter.feed(first)
        paragraphs = segmenter.finish()
        assert len(paragraphs) == 1
        assert paragraphs[0].sentences[0].text == "Half"

    def test_feed_after_finish_raises(self):
        segmenter = ParagraphSegmenter()
        segmenter.finish()
        with pytest.raises(RuntimeError):
            segmenter.feed(WordToken("late", 0.0, 0.1, "A"))

    def test_segment_paragraphs_empty(self):
        assert segment_paragraphs([]) == []


class TestScribeSample:
    """Full sample payload from conftest."""

    def test_paragraph_layout(self, structured_transcript):
        paras = structured_transcript.paragraphs
        assert [p.speaker_index for p in paras] == [0, 1, 0]
        assert paras[0].sentences[0].text == "This call is on a recorded line."
        assert paras[1].sentences[0].text == "Okay."
        assert paras[2].sentences[0].text == "Our NMLS ID is 12345."

    def test_spacing_between_turns_is_not_a_sentence(self, structured_transcript):
        for para in structured_transcript.paragraphs:
            assert len(para.sentences) == 1

    def test_timing(self, structured_transcript):
        paras = structured_transcript.paragraphs
        assert paras[0].start == pytest.approx(0.0)
        assert paras[0].end == pytest.approx(1.90)
        assert paras[1].start == pytest.approx(2.10)
        assert paras[1].end == pytest.approx(2.50)
        assert paras[2].start == pytest.approx(2.80)
        assert paras[2].end == pytest.approx(4.80)
        assert structured_transcript.duration_s == pytest.approx(4.80)

    def test_word_counts(self, structured_transcript):
        assert [p.word_count for p in structured_transcript.paragraphs] == [7, 1, 5]

    def test_words_and_text(self, structured_transcript, scribe_payload):
        assert len(structured_transcript.words) == len(scribe_payload["words"])
        assert structured_transcript.full_text == scribe_payload["text"]
        assert structured_transcript.language_code == "eng"

    def test_sentence_bounds_invariant(self, structured_transcript):
        for para in structured_transcript.paragraphs:
            for sentence in para.sentences:
                assert sentence.start <= sentence.end
                assert para.start <= sentence.start
                assert sentence.end <= para.end

    def test_normalize_payload_matches(self, scribe_payload, structured_transcript):
        assert normalize_payload(scribe_payload) == structured_transcript

    def test_active_paragraph(self, structured_transcript):
        assert structured_transcript.active_paragraph(2.2).speaker_index == 1
        assert structured_transcript.active_paragraph(2.6) is None


class TestMalformedPayload:

    def test_words_not_a_list(self):
        with pytest.raises(MalformedPayloadError):
            normalize_payload({"text": "x", "words": "oops"})

    def test_payload_not_an_object(self):
        with pytest.raises(MalformedPayloadError):
            normalize_payload(["not", "a", "dict"])

    def test_non_string_speaker_rejected(self):
        with pytest.raises(MalformedPayloadError):
            normalize_payload({"words": [{"text": "Hi.", "start": 0, "end": 1, "speaker_id": 1}]})

    @pytest.mark.parametrize("word", [
        {"text": None, "start": 0, "end": 1},
        {"text": 42, "start": 0, "end": 1},
        {"text": "Hi.", "start": 0, "end": 1, "type": ["word"]},
        {"text": "Hi.", "start": "0", "end": 1},
        {"text": "Hi.", "start": 0, "end": True},
    ])
    def test_wrong_word_field_types_rejected(self, word):
        with pytest.raises(MalformedPayloadError):
            normalize_payload({"text": "Hi.", "words": [word]})

    def test_non_string_full_text_rejected(self):
        with pytest.raises(MalformedPayloadError):
            normalize_payload({"text": 7, "words": []})

    def test_null_speaker_and_type_fall_back(self):
        result = normalize_payload({
            "words": [{"text": "Hi.", "start": 0, "end": 1, "speaker_id": None, "type": None}],
        })
        assert result.words[0].speaker_label == "speaker_0"
        assert result.words[0].kind == "word"
