"""
Scalar sequence sources for deterministic replay.

Stochastic-collocation drivers prescribe the pitch angle or energy of each
run instead of letting the generator draw it. The generator asks a source
for the next value; files are one of several backings.

File format: whitespace-delimited numeric tokens, e.g.

    42.5
    17.0 33.25
"""

from pathlib import Path
from typing import Iterable, Iterator, Optional, Protocol, Union

from precip_mc.exceptions import SequenceExhaustedError, SequenceParseError


class SequenceSource(Protocol):
    """Anything that yields the next prescribed scalar."""

    def next_value(self) -> float:
        ...


def _parse_token(token: str, origin: str) -> float:
    try:
        return float(token)
    except ValueError:
        raise SequenceParseError(origin, token) from None


class FileValueSource:
    """
    Reopens the file on every call and returns its first token.

    The collocation driver rewrites the file between runs, so each run sees
    one prescribed value for all of its events.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def next_value(self) -> float:
        if not self.path.exists():
            raise FileNotFoundError(f"Replay file not found: {self.path}")

        with open(self.path, 'r') as f:
            for line in f:
                tokens = line.split()
                if tokens:
                    return _parse_token(tokens[0], str(self.path))

        raise SequenceExhaustedError(f"Replay file is empty: {self.path}")

    def __repr__(self) -> str:
        return f"FileValueSource('{self.path}')"


class FileSequence:
    """
    Streams the file's tokens in order, one per call.

    The file is opened lazily on the first call and closed once exhausted.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._tokens: Optional[Iterator[str]] = None
        self.n_consumed = 0

    def _iter_tokens(self) -> Iterator[str]:
        with open(self.path, 'r') as f:
            for line in f:
                yield from line.split()

    def next_value(self) -> float:
        if self._tokens is None:
            if not self.path.exists():
                raise FileNotFoundError(f"Replay file not found: {self.path}")
            self._tokens = self._iter_tokens()

        try:
            token = next(self._tokens)
        except StopIteration:
            raise SequenceExhaustedError(
                f"Replay file {self.path} exhausted after {self.n_consumed} values"
            ) from None

        self.n_consumed += 1
        return _parse_token(token, f"{self.path} (token {self.n_consumed})")

    def __repr__(self) -> str:
        return f"FileSequence('{self.path}', consumed={self.n_consumed})"


class CannedSequence:
    """In-memory sequence (tests, scripted replays)."""

    def __init__(self, values: Iterable[float]):
        self.values = [float(v) for v in values]
        self._index = 0

    def next_value(self) -> float:
        if self._index >= len(self.values):
            raise SequenceExhaustedError(
                f"Canned sequence exhausted after {len(self.values)} values")
        value = self.values[self._index]
        self._index += 1
        return value

    @property
    def remaining(self) -> int:
        return len(self.values) - self._index

    def __repr__(self) -> str:
        return f"CannedSequence(n={len(self.values)}, remaining={self.remaining})"


def open_replay_source(path: Union[str, Path], mode: str = 'reread') -> SequenceSource:
    """
    Build a file-backed source.

    Parameters:
        path: Replay file
        mode: 'reread' (first token every call) or 'stream' (one token per call)
    """
    if mode == 'reread':
        return FileValueSource(path)
    if mode == 'stream':
        return FileSequence(path)
    raise ValueError(f"Unknown replay mode '{mode}'. Available: ['reread', 'stream']")
