"""Tests for variable extraction and substitution."""

from __future__ import annotations

from app.services.flow_variables import extract_variables, substitute_variables


class TestExtractVariables:

    def test_comment_payload(self, comment_payload):
        variables = extract_variables(comment_payload)
        assert variables == {
            "comment_id": "c1",
            "comment_text": "What is the PRICE?",
            "message_text": "What is the PRICE?",
            "username": "bob",
            "user_id": "u42",
            "sender_id": "u42",
            "media_id": "media_9",
        }

    def test_dm_payload(self):
        variables = extract_variables({"message_id": "m1", "message_text": "hi", "sender_id": "s1"})
        assert variables["message_id"] == "m1"
        assert variables["message_text"] == "hi"
        assert variables["sender_id"] == "s1"
        assert variables["user_id"] == "s1"
        assert "username" not in variables

    def test_dm_payload_with_username(self):
        variables = extract_variables({"message_text": "hi", "sender_id": "s1", "sender_username": "amy"})
        assert variables["username"] == "amy"

    def test_mention_payload(self):
        variables = extract_variables({
            "mention_id": "mn1",
            "mention_text": "@shop love it",
            "from_id": "u7",
            "from_username": "cara",
            "media_id": "media_2",
        })
        assert variables["mention_id"] == "mn1"
        assert variables["message_text"] == "@shop love it"
        assert variables["username"] == "cara"
        assert variables["user_id"] == "u7"
        assert variables["media_id"] == "media_2"
        assert "sender_id" not in variables

    def test_story_reply_payload(self):
        variables = extract_variables({
            "reply_id": "r1",
            "reply_text": "so cool",
            "from_id": "u8",
            "from_username": "dan",
        })
        assert variables == {
            "reply_id": "r1",
            "reply_text": "so cool",
            "message_text": "so cool",
            "username": "dan",
            "user_id": "u8",
        }

    def test_unrecognized_payload_is_empty(self):
        assert extract_variables({"field": "live_comments", "value": {}}) == {}
        assert extract_variables({}) == {}

    def test_non_dict_payload_is_empty(self):
        assert extract_variables(None) == {}

    def test_only_text_marker_is_enough(self):
        variables = extract_variables({"comment_text": "nice"})
        assert variables == {"comment_text": "nice", "message_text": "nice"}

    def test_multiple_shapes_later_alias_wins(self):
        variables = extract_variables({
            "comment_id": "c1",
            "comment_text": "from comment",
            "from_id": "u1",
            "message_id": "m1",
            "message_text": "from dm",
            "sender_id": "s1",
        })
        assert variables["comment_id"] == "c1"
        assert variables["message_text"] == "from dm"
        assert variables["sender_id"] == "s1"


class TestSubstituteVariables:

    def test_replaces_known_tokens(self):
        assert substitute_variables("Hi {username}!", {"username": "bob"}) == "Hi bob!"

    def test_repeated_tokens(self):
        text = substitute_variables("{a}-{a}-{b}", {"a": 1, "b": "x"})
        assert text == "1-1-x"

    def test_unknown_tokens_left_verbatim(self):
        assert substitute_variables("Hi {username}, see {link}", {"username": "bob"}) == "Hi bob, see {link}"

    def test_non_string_passthrough(self):
        assert substitute_variables(None, {"a": 1}) is None
