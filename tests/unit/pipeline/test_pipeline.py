"""
Unit tests for ReplyPipeline.handle_event.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from reply_labeler.atproto.exceptions import InvalidRecord, InvalidURI, MalformedReference, PostNotFound
from reply_labeler.cache.post_cache import PostCache
from reply_labeler.decision.classifiers import DomainLinkClassifier, OracleClassifier
from reply_labeler.decision.engine import DecisionEngine
from reply_labeler.decision.policy import LabelPolicy, rules_for_flags
from reply_labeler.dispatch.exceptions import LabelerHTTPError
from reply_labeler.llm.exceptions import OracleTimeoutError
from reply_labeler.models.enums import LabelEnum
from reply_labeler.models.verdict import ClassificationVerdict
from reply_labeler.operators import OperatorRegistry
from reply_labeler.pipeline import PipelineStatus, ReplyPipeline


OP = "did:plc:watchedoperator"
LOG_OP = "did:plc:logonlyoperator"
PARENT_URI = f"at://{OP}/app.bsky.feed.post/3kparent"
LOG_PARENT_URI = f"at://{LOG_OP}/app.bsky.feed.post/3kparent"
STRANGER_URI = "at://did:plc:stranger/app.bsky.feed.post/3kparent"


@pytest.fixture
def operators():
    return OperatorRegistry.from_dids([OP], [LOG_OP])


@pytest.fixture
def post_cache(parent_post):
    cache = MagicMock(spec=PostCache)
    cache.get = AsyncMock(return_value=parent_post)
    return cache


@pytest.fixture
def make_pipeline(operators, post_cache, mock_oracle, mock_dispatcher):
    def _make(classifier=None, **policy_kwargs) -> ReplyPipeline:
        engine = DecisionEngine(LabelPolicy(**policy_kwargs), operators, mock_dispatcher)
        return ReplyPipeline(
            operators,
            post_cache,
            classifier or OracleClassifier(mock_oracle),
            engine,
        )

    return _make


async def test_labels_reply_to_watched_operator(
    make_pipeline, create_event, mock_oracle, mock_dispatcher, post_cache
):
    mock_oracle.classify.return_value = ClassificationVerdict(
        flags={"bad_faith": True, "off_topic": False, "funny": False}
    )
    event = create_event(parent_uri=PARENT_URI, text="ratio")

    result = await make_pipeline().handle_event(event)

    assert result.status == PipelineStatus.LABELED
    assert result.labels == (LabelEnum.BAD_FAITH,)
    assert result.emitted == (LabelEnum.BAD_FAITH,)
    post_cache.get.assert_awaited_once_with(PARENT_URI)
    mock_oracle.classify.assert_awaited_once_with("Here is my opinion", "ratio")
    mock_dispatcher.emit.assert_awaited_once_with(event.uri, "bad-faith")


async def test_unlabeled_reply(make_pipeline, create_event, mock_dispatcher):
    result = await make_pipeline().handle_event(create_event(parent_uri=PARENT_URI))

    assert result.status == PipelineStatus.UNLABELED
    mock_dispatcher.emit.assert_not_awaited()


async def test_quote_post_is_classified(make_pipeline, create_event, post_cache):
    result = await make_pipeline().handle_event(create_event(quote_uri=PARENT_URI))

    assert result.status == PipelineStatus.UNLABELED
    post_cache.get.assert_awaited_once_with(PARENT_URI)


async def test_non_post_write_is_ignored(make_pipeline, create_event, post_cache):
    result = await make_pipeline().handle_event(create_event(operation="delete"))

    assert result.status == PipelineStatus.IGNORED
    post_cache.get.assert_not_awaited()


async def test_top_level_post_makes_no_network_calls(
    make_pipeline, create_event, post_cache, mock_oracle
):
    result = await make_pipeline().handle_event(create_event(text="hello world"))

    assert result.status == PipelineStatus.NO_ANCESTOR
    post_cache.get.assert_not_awaited()
    mock_oracle.classify.assert_not_awaited()


async def test_unwatched_parent_is_not_fetched(make_pipeline, create_event, post_cache, mock_oracle):
    result = await make_pipeline().handle_event(create_event(parent_uri=STRANGER_URI))

    assert result.status == PipelineStatus.NOT_WATCHED
    post_cache.get.assert_not_awaited()
    mock_oracle.classify.assert_not_awaited()


@pytest.mark.parametrize("text", ["", "   \n"])
async def test_empty_reply_text_is_skipped(make_pipeline, create_event, post_cache, mock_oracle, text):
    result = await make_pipeline().handle_event(create_event(parent_uri=PARENT_URI, text=text))

    assert result.status == PipelineStatus.EMPTY_TEXT
    post_cache.get.assert_not_awaited()
    mock_oracle.classify.assert_not_awaited()


async def test_log_only_operator_audits_but_does_not_emit(
    make_pipeline, create_event, mock_oracle, mock_dispatcher
):
    mock_oracle.classify.return_value = ClassificationVerdict(
        flags={"bad_faith": False, "off_topic": True, "funny": False}
    )

    result = await make_pipeline(
        logged_labels=frozenset({"off-topic"}), persistence_enabled=True
    ).handle_event(create_event(parent_uri=LOG_PARENT_URI))

    assert result.audited == (LabelEnum.OFF_TOPIC,)
    mock_dispatcher.emit.assert_not_awaited()
    entry = mock_dispatcher.audit.await_args.args[0]
    assert entry.parent_did == LOG_OP
    assert entry.parent_text == "Here is my opinion"


async def test_malformed_reply_ref_raises(make_pipeline, create_event, create_record):
    record = create_record()
    record["reply"] = {"root": {"uri": PARENT_URI, "cid": "x"}}

    with pytest.raises(MalformedReference):
        await make_pipeline().handle_event(create_event(record=record))


async def test_invalid_parent_uri_raises(make_pipeline, create_event):
    with pytest.raises(InvalidURI):
        await make_pipeline().handle_event(create_event(parent_uri="at://"))


async def test_undecodable_record_raises(make_pipeline, create_event):
    with pytest.raises(InvalidRecord):
        await make_pipeline().handle_event(create_event(record={"text": ["not", "a", "string"]}))


async def test_wrongly_shaped_quote_embed_raises_invalid_record(make_pipeline, create_event, create_record):
    record = create_record()
    record["embed"] = {"$type": "app.bsky.embed.recordWithMedia", "record": {"record": "oops"}}

    with pytest.raises(InvalidRecord):
        await make_pipeline().handle_event(create_event(record=record))


async def test_parent_lookup_failure_has_no_side_effects(
    make_pipeline, create_event, post_cache, mock_oracle, mock_dispatcher
):
    post_cache.get.side_effect = PostNotFound("failed to get posts (empty response)")

    with pytest.raises(PostNotFound):
        await make_pipeline().handle_event(create_event(parent_uri=PARENT_URI))

    mock_oracle.classify.assert_not_awaited()
    mock_dispatcher.emit.assert_not_awaited()


async def test_oracle_timeout_has_no_side_effects(
    make_pipeline, create_event, mock_oracle, mock_dispatcher
):
    mock_oracle.classify.side_effect = OracleTimeoutError("classification exceeded 30s deadline")

    with pytest.raises(OracleTimeoutError):
        await make_pipeline(log_no_label=True, persistence_enabled=True).handle_event(
            create_event(parent_uri=PARENT_URI)
        )

    mock_dispatcher.emit.assert_not_awaited()
    mock_dispatcher.audit.assert_not_awaited()


async def test_emission_failure_propagates(make_pipeline, create_event, mock_oracle, mock_dispatcher):
    mock_oracle.classify.return_value = ClassificationVerdict(
        flags={"bad_faith": True, "off_topic": True, "funny": False}
    )
    mock_dispatcher.emit.side_effect = LabelerHTTPError(500)

    with pytest.raises(LabelerHTTPError):
        await make_pipeline().handle_event(create_event(parent_uri=PARENT_URI))

    assert mock_dispatcher.emit.await_count == 1


async def test_domain_link_profile_skips_parent_fetch(make_pipeline, create_event, post_cache, mock_dispatcher):
    pipeline = make_pipeline(
        classifier=DomainLinkClassifier(["axios.com"]),
        rules=rules_for_flags(["pol_link"]),
    )

    result = await pipeline.handle_event(
        create_event(parent_uri=PARENT_URI, text="", links=("https://www.axios.com/story",))
    )

    assert result.status == PipelineStatus.LABELED
    assert result.labels == (LabelEnum.POL_LINK,)
    post_cache.get.assert_not_awaited()
    mock_dispatcher.emit.assert_awaited_once_with(
        "at://did:plc:replier/app.bsky.feed.post/3kreply", "pol-link"
    )
