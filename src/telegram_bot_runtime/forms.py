"""
Linear multi-step forms.

A form is a fixed sequence of prompts. Each chat can have at most one form in
progress; every plain-text message from that chat answers the current prompt
until the last answer triggers the form's completion callback.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Tuple

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL = 3600.0


class MessageSender(Protocol):
    """The part of the Bot API client forms need."""

    def send_message(self, chat_id: int, text: str, **params: Any) -> Any: ...


FormCompletion = Callable[[int, Dict[str, str], Any], None]


@dataclass(frozen=True)
class FormStep:
    """One prompt of a form; the answer is stored under ``key``."""

    prompt: str
    key: str


@dataclass(frozen=True)
class Form:
    """
    A registered form definition.

    Attributes:
        name: Unique form name, used by /form <name>.
        steps: Ordered prompts.
        completion: Called with (chat_id, answers, api) once every step is answered.
    """

    name: str
    steps: Tuple[FormStep, ...]
    completion: FormCompletion


@dataclass
class FormSession:
    """Progress of one chat through a form."""

    form_name: str
    step_index: int = 0
    answers: Dict[str, str] = field(default_factory=dict)
    updated_at: float = 0.0


def create_form_step(prompt: str, key: str) -> FormStep:
    return FormStep(prompt=prompt, key=key)


def create_form(
    name: str, steps: Sequence[FormStep], completion: FormCompletion
) -> Form:
    if not steps:
        raise ValueError(f"Form {name!r} needs at least one step")
    return Form(name=name, steps=tuple(steps), completion=completion)


class FormManager:
    """Form registry plus the per-chat session table."""

    def __init__(
        self,
        api: MessageSender,
        session_ttl: float = DEFAULT_SESSION_TTL,
        clock: Callable[[], float] = time.monotonic,
        command_prefix: str = "/",
    ) -> None:
        self._api = api
        self.command_prefix = command_prefix
        self._session_ttl = session_ttl
        self._clock = clock
        self._forms: Dict[str, Form] = {}
        self._sessions: Dict[int, FormSession] = {}

    def register_form(self, form: Form) -> None:
        self._forms[form.name] = form

    def forms(self) -> List[str]:
        return list(self._forms)

    def has_session(self, chat_id: int) -> bool:
        return chat_id in self._sessions

    def start_form(self, chat_id: int, form_name: str) -> bool:
        """
        Start ``form_name`` in ``chat_id`` and send its first prompt.

        An existing session in the chat is replaced. An unknown form name is
        reported to the chat and returns False.
        """
        form = self._forms.get(form_name)
        if form is None:
            self._api.send_message(
                chat_id,
                f'Form "{form_name}" not found. '
                f"Use {self.command_prefix}formlist to see available forms.",
            )
            return False

        if chat_id in self._sessions:
            logger.info(
                "Chat %s replaced form %s with %s",
                chat_id,
                self._sessions[chat_id].form_name,
                form_name,
            )
        self._sessions[chat_id] = FormSession(form_name=form_name, updated_at=self._clock())
        logger.info("Chat %s started form %s", chat_id, form_name)
        self._api.send_message(chat_id, form.steps[0].prompt)
        return True

    def process_input(
        self, chat_id: int, text: str, api: Optional[MessageSender] = None
    ) -> bool:
        """
        Record ``text`` as the answer to the chat's current step.

        Sends the next prompt, or runs the completion callback after the last
        step. Returns False when the chat has no form in progress.
        """
        api = api or self._api
        session = self._sessions.get(chat_id)
        if session is None:
            return False
        if self._expired(session):
            logger.info("Chat %s form %s expired", chat_id, session.form_name)
            del self._sessions[chat_id]
            return False

        # Re-registering a name swaps the definition under running sessions
        form = self._forms[session.form_name]
        if session.step_index >= len(form.steps):
            del self._sessions[chat_id]
            return False

        step = form.steps[session.step_index]
        session.answers[step.key] = text
        session.updated_at = self._clock()

        if session.step_index + 1 < len(form.steps):
            session.step_index += 1
            api.send_message(chat_id, form.steps[session.step_index].prompt)
            return True

        del self._sessions[chat_id]
        logger.info("Chat %s completed form %s", chat_id, form.name)
        form.completion(chat_id, dict(session.answers), api)
        return True

    def cancel_form(self, chat_id: int) -> bool:
        return self._sessions.pop(chat_id, None) is not None

    def prune_expired(self) -> int:
        """Drop idle sessions; returns how many were removed."""
        expired = [
            chat_id
            for chat_id, session in self._sessions.items()
            if self._expired(session)
        ]
        for chat_id in expired:
            del self._sessions[chat_id]
        if expired:
            logger.info("Pruned %d idle form session(s)", len(expired))
        return len(expired)

    def _expired(self, session: FormSession) -> bool:
        if self._session_ttl <= 0:
            return False
        return self._clock() - session.updated_at > self._session_ttl
