"""Response assembly — engine outcomes rendered as chat text.

The wording is presentation detail. The routing is not: no-op outcomes,
listings and help always go privately to the requester, and every committed
join or leave is broadcast to the channel.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from ..domain.queue import LockQueue
    from ..waitlist.outcomes import JoinOutcome, LeaveOutcome


class Destination(str, Enum):
    """Where a response is delivered."""

    REQUESTER = "requester"
    CHANNEL = "channel"


@dataclass(frozen=True)
class Response:
    """Text to send and where to send it."""

    message: str
    destination: Destination

    @classmethod
    def private(cls, message: str) -> Response:
        return cls(message=message, destination=Destination.REQUESTER)

    @classmethod
    def broadcast(cls, message: str) -> Response:
        return cls(message=message, destination=Destination.CHANNEL)


def mention(user: str) -> str:
    return f"<@{user}>"


def name_list(users: Sequence[str]) -> str:
    """``<@a>``, ``<@a> and <@b>``, ``<@a>, <@b> and <@c>``."""
    mentions = [mention(u) for u in users]
    if len(mentions) <= 1:
        return "".join(mentions)
    return f"{', '.join(mentions[:-1])} and {mentions[-1]}"


def queue_message(resource: str, queue: LockQueue) -> str:
    holder = queue.holder
    if holder is None:
        return f"No one is in line for `{resource}` 🔓"
    waiters = queue.waiters
    if not waiters:
        return f"{mention(holder)} has locked `{resource}` 🔒"
    others = "other" if len(waiters) == 1 else "others"
    return (
        f"{mention(holder)} has locked `{resource}` 🔒, with {len(waiters)} "
        f"{others} waiting in line: {name_list(waiters)}"
    )


# ── Waitlist outcomes ────────────────────────────────────────────


def render_join(outcome: JoinOutcome) -> Response:
    resource = outcome.key.resource
    if outcome.already_member:
        return Response.private(
            f"You are already queued for `{resource}`. "
            + queue_message(resource, outcome.queue)
        )
    return Response.broadcast(queue_message(resource, outcome.queue))


def render_leave(outcome: LeaveOutcome) -> Response:
    resource = outcome.key.resource
    user = mention(outcome.requester)
    if not outcome.was_member:
        return Response.private(
            f"You are not in line for `{resource}`. "
            + queue_message(resource, outcome.queue)
        )
    if not outcome.was_holder:
        return Response.broadcast(
            f"{user} left the line for `{resource}`. "
            + queue_message(resource, outcome.queue)
        )
    message = f"{user} has unlocked `{resource}` 🔓"
    if outcome.new_holder is not None:
        message += f", {mention(outcome.new_holder)} now holds it 🔒"
    return Response.broadcast(message)


def render_already_unlocked(resource: str) -> Response:
    return Response.private(f"`{resource}` is already unlocked 🔓")


def render_force_release(requester: str, outcome: LeaveOutcome) -> Response:
    """``outcome`` removed the previous holder on behalf of ``requester``."""
    resource = outcome.key.resource
    if not outcome.was_member:
        return render_already_unlocked(resource)
    previous = outcome.previous.holder or outcome.requester
    message = (
        f"{mention(requester)} has force unlocked `{resource}` 🔓 "
        f"which was locked by {mention(previous)}"
    )
    if outcome.queue.is_empty and len(outcome.previous.owners) > 1:
        message += ", and cleared the waiting line"
    elif outcome.new_holder is not None:
        message += f". {mention(outcome.new_holder)} now holds it 🔒"
    return Response.broadcast(message)


def render_list(queues: Mapping[str, LockQueue]) -> Response:
    if not queues:
        return Response.private("No active locks in this channel 🔓")
    lines = ["Active locks in this channel:"]
    for resource in sorted(queues):
        queue = queues[resource]
        entry = queue.holder_entry
        if entry is None:
            continue
        stamp = entry.joined_at
        line = (
            f"> `{resource}` is locked by {mention(entry.name)} 🔒 "
            f"_<!date^{int(stamp.timestamp())}^{{date_pretty}} {{time}}|"
            f"{stamp.strftime('%a, %d %b %Y %H:%M:%S GMT')}>_"
        )
        if queue.waiters:
            line += f" ({len(queue.waiters)} waiting)"
        lines.append(line)
    return Response.private("\n".join(lines))


# ── Help and tokens ──────────────────────────────────────────────


def render_lock_usage(user: str) -> Response:
    return Response.private(
        "How to use `/lock`\n\n"
        "To lock a resource in this channel called `thingy`, use `/lock thingy`\n"
        "If someone already holds it you join the line and get it next.\n\n"
        "_Example:_\n"
        f"> *{mention(user)}*: `/lock dev`\n"
        f"> *Lockbot*: {mention(user)} has locked `dev` 🔒"
    )


def render_unlock_usage(user: str) -> Response:
    return Response.private(
        "How to use `/unlock`\n\n"
        "To unlock a resource in this channel called `thingy`, "
        "use `/unlock thingy`\n"
        "If you are waiting in line this takes you out of it.\n\n"
        "_Example:_\n"
        f"> *{mention(user)}*: `/unlock dev`\n"
        f"> *Lockbot*: {mention(user)} has unlocked `dev` 🔓\n\n"
        "To force unlock a resource locked by someone else, "
        "use `/unlock thingy force`"
    )


def render_token_usage(user: str, channel: str, team: str, url: str) -> Response:
    return Response.private(
        "How to use `/lbtoken`\n\n"
        "To generate a new access token for the Lockbot API use `/lbtoken new`\n\n"
        f"• The token is scoped to your user `{user}`, "
        f"this team `{team}` and this channel `{channel}`\n"
        "• Make a note of your token as it won't be displayed again\n"
        "• If you generate a new token in this channel it will "
        "invalidate the existing token for this channel\n\n"
        "The API is secured using basic access authentication. "
        "To authenticate with the API you must set a header:\n"
        "```Authorization: Basic <credentials>```\n"
        "where `<credentials>` is `user:token` base64 encoded\n\n"
        f"Explore the Lockbot API with OpenAPI 3 and Swagger UI: {url}/api-docs"
    )


def basic_credentials(user: str, token: str) -> str:
    return base64.b64encode(f"{user}:{token}".encode()).decode()


def render_token(
    token: str, user: str, channel: str, team: str, url: str
) -> Response:
    auth = f"--header 'Authorization: Basic {basic_credentials(user, token)}'"
    base_url = f"{url}/api/teams/{team}/channels/{channel}/locks"
    json_header = "--header 'Content-Type: application/json'"
    body = f"--data-raw '{{ \"name\": \"dev\", \"owner\": \"{user}\"}}'"
    return Response.private(
        f"Here is your new access token: `{token}`\n\n"
        "_Example API usage with `curl`:_\n\n"
        "> Fetch all locks 📜\n"
        f"```curl --request GET '{base_url}' {auth}```\n\n"
        "> Fetch lock `dev` 👀\n"
        f"```curl --request GET '{base_url}/dev' {auth}```\n\n"
        "> Create lock `dev` 🔒\n"
        f"```curl --request POST '{base_url}' {auth} {json_header} {body}```\n\n"
        "> Delete lock `dev` 🔓\n"
        f"```curl --request DELETE '{base_url}/dev' {auth}```"
    )
