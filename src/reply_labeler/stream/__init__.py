"""Jetstream event stream consumption."""

from reply_labeler.stream.consumer import EventHandler, JetstreamConsumer

__all__ = ["EventHandler", "JetstreamConsumer"]
