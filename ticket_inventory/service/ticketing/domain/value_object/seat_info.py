import attrs


SEATS_PER_ROW = 10


@attrs.frozen
class SeatInfo:
    """Deterministic seat label derived from the ticket's 0-based position in its inventory."""

    index: int = attrs.field(validator=attrs.validators.ge(0))
    row: int
    seat: int

    @property
    def label(self) -> str:
        return f'R{self.row}-S{self.seat}'

    @classmethod
    def from_index(cls, index: int) -> 'SeatInfo':
        return cls(index=index, row=index // SEATS_PER_ROW + 1, seat=index % SEATS_PER_ROW + 1)
