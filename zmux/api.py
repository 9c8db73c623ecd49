"""HTTP endpoints for channels, channel summaries, local addresses and URL parsing."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from flask import Blueprint, Response, jsonify, request

from zmux import avurl
from zmux.channel import ChannelValidationError
from zmux.channel_repo import ChannelNotFoundError
from zmux.channel_service import ChannelService
from zmux.dto_create import CreateChannel
from zmux.dto_modify import ModifyChannel
from zmux.dto_replace import ReplaceChannel
from zmux.fields import Field, RequestError, reject_unknown
from zmux.localaddr import LocalAddrLister, LocalAddrListerOptions
from zmux.summary import SummaryOptions, SummaryService

_log = logging.getLogger("zmux.api")

_ID_PATTERN = re.compile(r"[+-]?[0-9]+")
_INT64_MAX = (1 << 63) - 1
_BAD_REQUEST_ERRORS = (RequestError, ValueError, TypeError)


def _error(status: int, exc: BaseException | str) -> tuple[Response, int]:
    if status >= 500:
        _log.error("request failed: %s", exc)
    else:
        _log.warning("request rejected: %s", exc)
    return jsonify(message=str(exc)), status


def _lookup_error(exc: Exception) -> tuple[Response, int]:
    if isinstance(exc, ChannelNotFoundError):
        return _error(404, "channel not found")
    return _error(500, exc)


def _parse_id(raw: str) -> int | None:
    if not _ID_PATTERN.fullmatch(raw):
        return None
    value = int(raw)
    if value <= 0 or value > _INT64_MAX:
        return None
    return value


def _read_object() -> dict[str, Any] | None:
    """Decode the request body as a JSON object (or null)."""
    raw = request.get_data(as_text=True)
    if not raw.strip():
        raise RequestError("EOF")
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise RequestError(str(exc)) from exc
    if data is not None and not isinstance(data, dict):
        raise RequestError("request body must be a JSON object")
    return data


def _with_count(payload: list[Any]) -> Response:
    response = jsonify(payload)
    response.headers["X-Total-Count"] = str(len(payload))
    return response


class ChannelsHandler:
    """REST handlers for the channel collection and its members."""

    def __init__(self, service: Any = None, summary: Any = None) -> None:
        self._service = service if service is not None else ChannelService()
        self._summary = (
            summary
            if summary is not None
            else SummaryService(options=SummaryOptions(ttl=1.0, refresh_timeout=0.5))
        )

    def get_channel_list(self) -> Any:
        """GET /channels: every channel, with ``X-Total-Count``."""
        try:
            channels = self._service.list_channels()
        except Exception as exc:
            return _error(500, exc)
        return _with_count([ch.to_dict() for ch in channels])

    def create_channel(self) -> Any:
        """POST /channels: create a channel with defaults applied."""
        try:
            channel = CreateChannel.from_json(_read_object()).to_channel()
        except _BAD_REQUEST_ERRORS as exc:
            return _error(400, exc)
        try:
            channel.validate()
        except ChannelValidationError as exc:
            return _error(422, exc)
        try:
            self._service.create_channel(channel)
        except Exception as exc:
            return _error(500, exc)
        response = jsonify(channel.to_dict())
        response.status_code = 201
        response.headers["Location"] = f"/api/channels/{channel.id}"
        return response

    def get_channel(self, channel_id: str) -> Any:
        """GET /channels/<id>: one channel."""
        parsed = _parse_id(channel_id)
        if parsed is None:
            return _error(400, "invalid id")
        try:
            channel = self._service.get_channel(parsed)
        except Exception as exc:
            return _lookup_error(exc)
        return jsonify(channel.to_dict())

    def modify_channel(self, channel_id: str) -> Any:
        """PATCH /channels/<id>: merge-patch update."""
        parsed = _parse_id(channel_id)
        if parsed is None:
            return _error(400, "invalid id")
        try:
            channel = self._service.get_channel(parsed)
        except Exception as exc:
            return _lookup_error(exc)
        try:
            patch = ModifyChannel.from_json(_read_object())
            patch.merge_patch(channel)
        except _BAD_REQUEST_ERRORS as exc:
            return _error(400, exc)
        try:
            channel.validate()
        except ChannelValidationError as exc:
            return _error(422, exc)
        try:
            self._service.update_channel(channel)
        except Exception as exc:
            return _lookup_error(exc)
        return Response(status=204)

    def replace_channel(self, channel_id: str) -> Any:
        """PUT /channels/<id>: full replacement."""
        parsed = _parse_id(channel_id)
        if parsed is None:
            return _error(400, "invalid id")
        try:
            exists = self._service.channel_exists(parsed)
        except Exception as exc:
            return _error(500, exc)
        if not exists:
            return Response(status=404)
        try:
            channel = ReplaceChannel.from_json(_read_object()).to_channel(parsed)
        except _BAD_REQUEST_ERRORS as exc:
            return _error(400, exc)
        try:
            channel.validate()
        except ChannelValidationError as exc:
            return _error(422, exc)
        try:
            self._service.update_channel(channel)
        except Exception as exc:
            return _lookup_error(exc)
        return jsonify(channel.to_dict())

    def delete_channel(self, channel_id: str) -> Any:
        """DELETE /channels/<id>: remove a channel; responds with its id."""
        parsed = _parse_id(channel_id)
        if parsed is None:
            return _error(400, "invalid id")
        try:
            self._service.delete_channel(parsed)
        except Exception as exc:
            return _lookup_error(exc)
        return jsonify(id=parsed)

    def summary(self) -> Any:
        """GET /channels/summary: cached dashboard summary; ``?force=1`` bypasses the cache."""
        if request.args.get("force") == "1":
            self._summary.invalidate()
        try:
            result = self._summary.get()
        except Exception as exc:
            return _error(500, exc)
        response = _with_count([s.to_dict() for s in result.data])
        response.headers["X-Cache"] = "HIT" if result.cache_hit else "MISS"
        response.headers["X-Summary-Generated-At"] = str(int(result.generated_at * 1000))
        return response


class LocalAddrHandler:
    """Lists bindable local IPv4 addresses."""

    def __init__(self, lister: Any = None) -> None:
        self._lister = lister if lister is not None else LocalAddrLister(LocalAddrListerOptions())

    def get_local_addr_list(self) -> Any:
        """GET /system/net/localaddrs."""
        try:
            addrs = self._lister.get_local_addrs()
        except Exception as exc:
            return _error(500, exc)
        return _with_count([addr.to_dict() for addr in addrs])


def _read_url() -> str:
    data = reject_unknown(_read_object() or {}, {"url"})
    url_field = Field.from_mapping(data, "url", str)
    if not url_field.is_set or url_field.is_null:
        return ""
    return url_field.value


class URLParseHandler:
    """Splits media URLs, with or without host and port validation."""

    def parse(self) -> Any:
        """POST /url/parse."""
        return self._handle(avurl.parse)

    def raw_parse(self) -> Any:
        """POST /url/parse/raw."""
        return self._handle(avurl.raw_parse)

    @staticmethod
    def _handle(parser: Any) -> Any:
        try:
            url = _read_url()
        except _BAD_REQUEST_ERRORS as exc:
            return _error(400, exc)
        try:
            parsed = parser(url)
        except ValueError as exc:
            return _error(422, exc)
        return jsonify(parsed.to_dict())


def create_blueprint(
    channels: ChannelsHandler | None = None,
    localaddrs: LocalAddrHandler | None = None,
    urlparse: URLParseHandler | None = None,
) -> Blueprint:
    """Return a blueprint mounted at ``/api`` with routes for the given handlers."""
    bp = Blueprint("zmux", __name__, url_prefix="/api")
    if channels is not None:
        bp.add_url_rule("/channels", "list_channels", channels.get_channel_list, methods=["GET"])
        bp.add_url_rule("/channels", "create_channel", channels.create_channel, methods=["POST"])
        bp.add_url_rule("/channels/summary", "channels_summary", channels.summary, methods=["GET"])
        bp.add_url_rule("/channels/<channel_id>", "get_channel", channels.get_channel, methods=["GET"])
        bp.add_url_rule(
            "/channels/<channel_id>", "replace_channel", channels.replace_channel, methods=["PUT"]
        )
        bp.add_url_rule(
            "/channels/<channel_id>", "modify_channel", channels.modify_channel, methods=["PATCH"]
        )
        bp.add_url_rule(
            "/channels/<channel_id>", "delete_channel", channels.delete_channel, methods=["DELETE"]
        )
    if localaddrs is not None:
        bp.add_url_rule(
            "/system/net/localaddrs", "local_addrs", localaddrs.get_local_addr_list, methods=["GET"]
        )
    if urlparse is not None:
        bp.add_url_rule("/url/parse", "url_parse", urlparse.parse, methods=["POST"])
        bp.add_url_rule("/url/parse/raw", "url_raw_parse", urlparse.raw_parse, methods=["POST"])
    return bp