from sqlalchemy import Enum as SQLEnum


def enum_column(enum_cls, name: str) -> SQLEnum:
    """Enum column type that persists member values ("under_review"), not names."""
    return SQLEnum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )
