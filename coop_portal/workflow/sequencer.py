"""
Document number sequencer.

Turns a per (template kind, language) counter into formatted, optionally
Thai-localized document numbers. Allocation never hands the same counter value
to two callers:

1. read the sequence row under a row lock (``SELECT ... FOR UPDATE``),
2. advance it with a conditional ``UPDATE`` keyed on the value just read,
3. retry from 1 if another transaction advanced it first,
4. only then format the number.

The sequencer flushes but does not commit. The caller commits, so the
allocation lands atomically with whatever consumes it (a print record, or the
standalone generation request).
"""
import logging
from dataclasses import dataclass
from typing import Optional, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from coop_portal.database.models.document import DocumentLanguage, DocumentNumberSequence, PrintRecord
from coop_portal.settings import (
    DEFAULT_DOCUMENT_DIGITS,
    DEFAULT_DOCUMENT_LANGUAGE,
    DEFAULT_DOCUMENT_PREFIX,
    DEFAULT_DOCUMENT_SUFFIX,
    DEFAULT_TEMPLATE_KIND,
    SEQUENCE_MAX_RETRIES,
)
from coop_portal.workflow.base import EngineComponent
from coop_portal.workflow.errors import SequenceConflictError, WorkflowValidationError

logger = logging.getLogger(__name__)

THAI_DIGITS = str.maketrans("0123456789", "๐๑๒๓๔๕๖๗๘๙")
ASCII_DIGITS = str.maketrans("๐๑๒๓๔๕๖๗๘๙", "0123456789")

DEFAULT_LANGUAGE = DocumentLanguage(DEFAULT_DOCUMENT_LANGUAGE)

PREFIX_MAX_LENGTH = 20
SUFFIX_MAX_LENGTH = 20
DIGITS_MIN = 1
DIGITS_MAX = 10


def to_thai_digits(text: str) -> str:
    """Replace every ASCII digit with its Thai numeral glyph."""
    return text.translate(THAI_DIGITS)


def format_document_number(
    prefix: str,
    digit_width: int,
    suffix: str,
    number: int,
    language: Union[DocumentLanguage, str],
) -> str:
    """Zero-pad ``number`` and wrap it in prefix/suffix.

    A number wider than ``digit_width`` is emitted in full, never truncated.
    Thai substitution covers the whole string, prefix and suffix included.
    """
    document_number = f"{prefix}{str(number).zfill(digit_width)}{suffix or ''}"
    if DocumentLanguage(language) == DocumentLanguage.THAI:
        return to_thai_digits(document_number)
    return document_number


def parse_document_number(
    document_number: str,
    prefix: str,
    digit_width: int,
    suffix: str,
    language: Union[DocumentLanguage, str],
) -> Optional[int]:
    """Return the counter value that formats to ``document_number``, or None."""
    head, tail = prefix, suffix or ""
    if DocumentLanguage(language) == DocumentLanguage.THAI:
        head, tail = to_thai_digits(head), to_thai_digits(tail)
    if not document_number.startswith(head) or not document_number.endswith(tail):
        return None
    digits = document_number[len(head):len(document_number) - len(tail)]
    if DocumentLanguage(language) == DocumentLanguage.THAI:
        digits = digits.translate(ASCII_DIGITS)
    if not digits or any(c not in "0123456789" for c in digits):
        return None
    number = int(digits)
    if str(number).zfill(digit_width) != digits:
        return None
    return number


@dataclass
class AllocatedNumber:
    document_number: str
    number: int
    template_kind: str
    language: DocumentLanguage


class SequenceStore:
    """Persistence for sequence rows: locked read, provisioning, conditional advance."""

    def __init__(self, db: Session):
        self.db = db

    def load(self, template_kind: str, language: DocumentLanguage, lock: bool = True) -> Optional[DocumentNumberSequence]:
        query = (
            self.db.query(DocumentNumberSequence)
            .filter(
                DocumentNumberSequence.template_kind == template_kind,
                DocumentNumberSequence.language == language,
            )
            # Always reload: a retry must see the value another writer committed
            .populate_existing()
        )
        if lock:
            query = query.with_for_update()
        return query.first()

    def load_or_create(self, template_kind: str, language: DocumentLanguage) -> DocumentNumberSequence:
        sequence = self.load(template_kind, language)
        if sequence:
            return sequence

        # First use: provision defaults instead of failing
        savepoint = self.db.begin_nested()
        try:
            sequence = DocumentNumberSequence(
                template_kind=template_kind,
                language=language,
                prefix=DEFAULT_DOCUMENT_PREFIX,
                digit_width=DEFAULT_DOCUMENT_DIGITS,
                suffix=DEFAULT_DOCUMENT_SUFFIX,
                current_number=1,
            )
            self.db.add(sequence)
            savepoint.commit()
            logger.info("provisioned document number sequence %s/%s", template_kind, language.value)
            return sequence
        except IntegrityError:
            # A concurrent caller provisioned the same row first
            savepoint.rollback()
            return self.load(template_kind, language)

    def compare_and_increment(self, sequence: DocumentNumberSequence, expected: int) -> bool:
        updated = (
            self.db.query(DocumentNumberSequence)
            .filter(
                DocumentNumberSequence.id == sequence.id,
                DocumentNumberSequence.current_number == expected,
            )
            .update(
                {DocumentNumberSequence.current_number: expected + 1},
                synchronize_session=False,
            )
        )
        return updated == 1


class DocumentNumberSequencer(EngineComponent):

    def __init__(self, db: Session, store: Optional[SequenceStore] = None, max_retries: int = SEQUENCE_MAX_RETRIES, **kwargs):
        super().__init__(db, **kwargs)
        self.store = store or SequenceStore(db)
        self.max_retries = max_retries

    @staticmethod
    def _language(language) -> DocumentLanguage:
        try:
            return DocumentLanguage(language)
        except ValueError:
            raise WorkflowValidationError(
                f"Unsupported document language: {language}",
                expected=[lang.value for lang in DocumentLanguage],
            )

    def allocate(self, template_kind: str = DEFAULT_TEMPLATE_KIND, language=DEFAULT_LANGUAGE) -> AllocatedNumber:
        """Reserve the next number for (template_kind, language) and format it."""
        language = self._language(language)

        for attempt in range(1, self.max_retries + 1):
            sequence = self.store.load_or_create(template_kind, language)
            observed = sequence.current_number
            if self.store.compare_and_increment(sequence, observed):
                break
            logger.warning(
                "sequence %s/%s moved past %s, retrying (attempt %s/%s)",
                template_kind, language.value, observed, attempt, self.max_retries,
            )
        else:
            raise SequenceConflictError(
                f"Could not allocate a {template_kind} number after {self.max_retries} attempts"
            )

        self.db.flush()
        # The row was updated behind the ORM's back
        self.db.expire(sequence)

        if len(str(observed)) > sequence.digit_width:
            logger.warning(
                "sequence %s/%s exceeded its digit width (%s > %s digits)",
                template_kind, language.value, observed, sequence.digit_width,
            )

        document_number = format_document_number(
            sequence.prefix, sequence.digit_width, sequence.suffix, observed, language
        )
        logger.info("allocated %s for %s/%s", document_number, template_kind, language.value)

        return AllocatedNumber(
            document_number=document_number,
            number=observed,
            template_kind=template_kind,
            language=language,
        )

    def generate(self, template_kind: str = DEFAULT_TEMPLATE_KIND, language=DEFAULT_LANGUAGE) -> AllocatedNumber:
        """Standalone allocation outside the print flow. Consumes a number."""
        allocated = self.allocate(template_kind, language)
        self.db.commit()
        self._publish(
            "document_number.allocated",
            {
                "template_kind": allocated.template_kind,
                "language": allocated.language.value,
                "document_number": allocated.document_number,
            },
        )
        return allocated

    def peek(self, template_kind: str = DEFAULT_TEMPLATE_KIND, language=DEFAULT_LANGUAGE) -> str:
        """Format the number the next allocation would return, without reserving it."""
        sequence = self.get_template(template_kind, language)
        return format_document_number(
            sequence.prefix, sequence.digit_width, sequence.suffix, sequence.current_number, sequence.language
        )

    def get_template(self, template_kind: str = DEFAULT_TEMPLATE_KIND, language=DEFAULT_LANGUAGE) -> DocumentNumberSequence:
        language = self._language(language)
        sequence = self.store.load(template_kind, language, lock=False)
        if sequence is None:
            sequence = self.store.load_or_create(template_kind, language)
            self.db.commit()
        return sequence

    def _check_issued_numbers(self, template_kind, language, prefix, digit_width, suffix, current_number):
        """Refuse a format under which a future allocation would repeat a printed number."""
        issued = (
            self.db.query(PrintRecord.document_number)
            .filter(
                PrintRecord.template_kind == template_kind,
                PrintRecord.language == language,
            )
            .all()
        )
        clashes = []
        for (document_number,) in issued:
            number = parse_document_number(document_number, prefix, digit_width, suffix, language)
            if number is not None and number >= current_number:
                clashes.append(number)
        if clashes:
            raise WorkflowValidationError(
                f"Template {template_kind}/{language.value} would re-issue printed document numbers "
                f"from {min(clashes)}; current_number must be at least {max(clashes) + 1}",
                expected=max(clashes) + 1,
            )

    def update_template(
        self,
        template_kind: str = DEFAULT_TEMPLATE_KIND,
        language=DEFAULT_LANGUAGE,
        prefix: Optional[str] = None,
        digit_width: Optional[int] = None,
        suffix: Optional[str] = None,
        current_number: Optional[int] = None,
    ) -> DocumentNumberSequence:
        """Change numbering format. The counter may move forward, never back."""
        language = self._language(language)
        errors = []

        if prefix is not None:
            if not prefix.strip():
                errors.append("prefix is required")
            elif len(prefix) > PREFIX_MAX_LENGTH:
                errors.append(f"prefix must be at most {PREFIX_MAX_LENGTH} characters")
        if digit_width is not None and not DIGITS_MIN <= digit_width <= DIGITS_MAX:
            errors.append(f"digit_width must be between {DIGITS_MIN} and {DIGITS_MAX}")
        if suffix is not None and len(suffix) > SUFFIX_MAX_LENGTH:
            errors.append(f"suffix must be at most {SUFFIX_MAX_LENGTH} characters")
        if current_number is not None and current_number < 1:
            errors.append("current_number must be at least 1")
        if errors:
            raise WorkflowValidationError("; ".join(errors))

        sequence = self.store.load_or_create(template_kind, language)

        if current_number is not None and current_number < sequence.current_number:
            raise WorkflowValidationError(
                f"current_number cannot move back from {sequence.current_number}; issued numbers are never reused",
                expected=sequence.current_number,
            )

        self._check_issued_numbers(
            template_kind,
            language,
            prefix if prefix is not None else sequence.prefix,
            digit_width if digit_width is not None else sequence.digit_width,
            suffix if suffix is not None else sequence.suffix,
            current_number if current_number is not None else sequence.current_number,
        )

        if prefix is not None:
            sequence.prefix = prefix
        if digit_width is not None:
            sequence.digit_width = digit_width
        if suffix is not None:
            sequence.suffix = suffix
        if current_number is not None:
            sequence.current_number = current_number

        self.db.commit()
        self.db.refresh(sequence)
        logger.info(
            "updated document number template %s/%s (next %s)",
            template_kind, language.value, sequence.current_number,
        )
        return sequence
