from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterator, List, Optional, Tuple

from .attacks import find_king, is_king_in_check
from .errors import InvalidFen, InvalidNotation
from .move import Move, Square, square_to_str, str_to_square
from .pieces import Board, Color, Piece, PieceKind, copy_board


STARTPOS_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

BACK_ROW = {Color.WHITE: 7, Color.BLACK: 0}
PAWN_ROW = {Color.WHITE: 6, Color.BLACK: 1}
# Row a pawn of the given color promotes on
LAST_ROW = {Color.WHITE: 0, Color.BLACK: 7}
KING_COL = 4
# Rook corner column by side (kingside True / queenside False)
ROOK_COL = {True: 7, False: 0}

_BACK_RANK_LAYOUT = (
    PieceKind.ROOK,
    PieceKind.KNIGHT,
    PieceKind.BISHOP,
    PieceKind.QUEEN,
    PieceKind.KING,
    PieceKind.BISHOP,
    PieceKind.KNIGHT,
    PieceKind.ROOK,
)


@dataclass(frozen=True)
class CastlingRights:
    """Four independent castling flags. Cleared flags never come back."""

    white_kingside: bool = True
    white_queenside: bool = True
    black_kingside: bool = True
    black_queenside: bool = True

    @classmethod
    def none(cls) -> "CastlingRights":
        return cls(False, False, False, False)

    def has(self, color: Color, kingside: bool) -> bool:
        if color is Color.WHITE:
            return self.white_kingside if kingside else self.white_queenside
        return self.black_kingside if kingside else self.black_queenside

    def without(self, color: Color, kingside: bool) -> "CastlingRights":
        if not self.has(color, kingside):
            return self
        field_name = f"{'white' if color is Color.WHITE else 'black'}_{'kingside' if kingside else 'queenside'}"
        return replace(self, **{field_name: False})

    def without_color(self, color: Color) -> "CastlingRights":
        return self.without(color, True).without(color, False)

    def to_fen(self) -> str:
        s = "".join(
            ch
            for ch, flag in (
                ("K", self.white_kingside),
                ("Q", self.white_queenside),
                ("k", self.black_kingside),
                ("q", self.black_queenside),
            )
            if flag
        )
        return s or "-"

    @classmethod
    def from_fen(cls, text: str) -> "CastlingRights":
        if text == "-":
            return cls.none()
        if not text or any(ch not in "KQkq" for ch in text):
            raise InvalidFen(f"invalid castling rights: {text!r}")
        return cls("K" in text, "Q" in text, "k" in text, "q" in text)


@dataclass
class Position:
    """Complete game position (board plus side-to-move state).

    Notes:
    - Rows run from black's back rank (row 0, rank 8) to white's (row 7).
    - A Position owns its board. ``apply_move`` always builds a new Position
      and never mutates the one it was given.
    """

    board: Board
    turn: Color = Color.WHITE
    en_passant: Optional[Square] = None
    castling: CastlingRights = CastlingRights()
    halfmove_clock: int = 0
    fullmove_number: int = 1
    is_check: bool = False

    @classmethod
    def initial(cls) -> "Position":
        """Create the standard starting position."""
        board: Board = [[None] * 8 for _ in range(8)]
        for col, kind in enumerate(_BACK_RANK_LAYOUT):
            board[BACK_ROW[Color.BLACK]][col] = Piece(kind, Color.BLACK)
            board[PAWN_ROW[Color.BLACK]][col] = Piece(PieceKind.PAWN, Color.BLACK)
            board[PAWN_ROW[Color.WHITE]][col] = Piece(PieceKind.PAWN, Color.WHITE)
            board[BACK_ROW[Color.WHITE]][col] = Piece(kind, Color.WHITE)
        return cls(board=board)

    @classmethod
    def from_fen(cls, fen: str) -> "Position":
        """Create a position from a Forsyth-Edwards Notation string.

        Args:
            fen (str): FEN string describing the position to load.

        Returns:
            Position: Position initialized with the state encoded in ``fen``.

        Raises:
            InvalidFen: If ``fen`` is empty, has the wrong number of fields, or
                contains invalid placement, castling rights, en passant square,
                or move counters.

        Notes:
            FEN has no per-piece history, so ``has_moved`` is inferred: pawns
            off their start row, kings off their home square, and rooks off
            their corners are moved, as are kings and rooks whose castling
            right is absent.
        """
        if not fen or not isinstance(fen, str):
            raise InvalidFen("FEN must be a non-empty string")
        parts = fen.strip().split()
        if len(parts) != 6:
            raise InvalidFen("FEN must have 6 fields")
        placement, stm, castling_txt, ep, halfmove, fullmove = parts

        if stm not in ("w", "b"):
            raise InvalidFen("side to move must be 'w' or 'b'")
        castling = CastlingRights.from_fen(castling_txt)

        ranks = placement.split("/")
        if len(ranks) != 8:
            raise InvalidFen("FEN board must have 8 ranks")
        board: Board = [[None] * 8 for _ in range(8)]
        for row, rank in enumerate(ranks):
            col = 0
            for ch in rank:
                if ch.isdigit():
                    n = int(ch)
                    if n < 1 or n > 8:
                        raise InvalidFen("invalid empty count in FEN rank")
                    col += n
                    continue
                if col >= 8:
                    raise InvalidFen("too many squares in FEN rank")
                try:
                    piece = Piece.from_symbol(ch)
                except ValueError as e:
                    raise InvalidFen(f"invalid piece in FEN: {ch!r}") from e
                board[row][col] = replace(
                    piece, has_moved=_infer_has_moved(piece, row, col, castling)
                )
                col += 1
            if col != 8:
                raise InvalidFen("rank does not sum to 8 squares in FEN")

        en_passant: Optional[Square]
        if ep == "-":
            en_passant = None
        else:
            try:
                en_passant = str_to_square(ep)
            except InvalidNotation as e:
                raise InvalidFen("invalid en passant square") from e
            # Target must be on rank 3 or rank 6
            if en_passant[0] not in (2, 5):
                raise InvalidFen("invalid en passant square rank")

        try:
            halfmove_clock = int(halfmove)
            fullmove_number = int(fullmove)
        except ValueError as e:
            raise InvalidFen("invalid move counters in FEN") from e
        if halfmove_clock < 0 or fullmove_number <= 0:
            raise InvalidFen("invalid move counters in FEN")

        turn = Color(stm)
        return cls(
            board=board,
            turn=turn,
            en_passant=en_passant,
            castling=castling,
            halfmove_clock=halfmove_clock,
            fullmove_number=fullmove_number,
            is_check=is_king_in_check(board, turn),
        )

    def to_fen(self) -> str:
        """Serialize the position into a FEN string."""
        ep = square_to_str(self.en_passant) if self.en_passant is not None else "-"
        return (
            f"{board_to_placement(self.board)} {self.turn.value} {self.castling.to_fen()} "
            f"{ep} {self.halfmove_clock} {self.fullmove_number}"
        )

    def piece_at(self, square: Square) -> Optional[Piece]:
        r, c = square
        return self.board[r][c]

    def pieces(self, color: Optional[Color] = None) -> Iterator[Tuple[Square, Piece]]:
        """Yield ``(square, piece)`` in row-major order, optionally by color."""
        for r in range(8):
            for c in range(8):
                p = self.board[r][c]
                if p is not None and (color is None or p.color is color):
                    yield (r, c), p

    def king_square(self, color: Color) -> Optional[Square]:
        return find_king(self.board, color)

    def canonical(self) -> str:
        return canonical_string(self.board)


def initial_position() -> Position:
    return Position.initial()


def apply_move(position: Position, move: Move) -> Position:
    """Return the position after ``move``; ``position`` is left untouched.

    The move must already be legal. Only the mechanics are applied: piece
    relocation, en passant removal, castling rook relocation, promotion,
    castling rights, en passant target, clocks, side to move and check flag.

    Raises:
        ValueError: If the origin square is empty.
    """
    fr, fc = move.from_sq
    tr, tc = move.to_sq
    board = copy_board(position.board)
    piece = board[fr][fc]
    if piece is None:
        raise ValueError(f"no piece on {square_to_str(move.from_sq)}")
    color = piece.color
    captured = board[tr][tc]
    is_pawn = piece.kind is PieceKind.PAWN

    # En passant: diagonal pawn step onto the empty target square
    if is_pawn and fc != tc and captured is None and position.en_passant == (tr, tc):
        board[fr][tc] = None

    if piece.kind is PieceKind.KING and abs(tc - fc) == 2:
        rook_from, rook_to = (7, 5) if tc > fc else (0, 3)
        rook = board[fr][rook_from]
        board[fr][rook_from] = None
        if rook is not None:
            board[fr][rook_to] = rook.moved()

    if is_pawn and tr == LAST_ROW[color]:
        board[tr][tc] = Piece(move.promotion or PieceKind.QUEEN, color, True)
    else:
        board[tr][tc] = piece.moved()
    board[fr][fc] = None

    en_passant: Optional[Square] = None
    if is_pawn and abs(tr - fr) == 2:
        en_passant = ((fr + tr) // 2, fc)

    turn = color.opponent
    return Position(
        board=board,
        turn=turn,
        en_passant=en_passant,
        castling=_update_castling_rights(position.castling, piece, move),
        halfmove_clock=0 if is_pawn or captured is not None else position.halfmove_clock + 1,
        fullmove_number=position.fullmove_number + (1 if color is Color.BLACK else 0),
        is_check=is_king_in_check(board, turn),
    )


def _update_castling_rights(rights: CastlingRights, piece: Piece, move: Move) -> CastlingRights:
    """Clear rights on king moves and on any move from or onto a rook corner."""
    if piece.kind is PieceKind.KING:
        rights = rights.without_color(piece.color)
    for color in (Color.WHITE, Color.BLACK):
        for kingside in (True, False):
            corner = (BACK_ROW[color], ROOK_COL[kingside])
            if move.from_sq == corner or move.to_sq == corner:
                rights = rights.without(color, kingside)
    return rights


def _infer_has_moved(piece: Piece, row: int, col: int, castling: CastlingRights) -> bool:
    if piece.kind is PieceKind.PAWN:
        return row != PAWN_ROW[piece.color]
    home = BACK_ROW[piece.color]
    if piece.kind is PieceKind.KING:
        if (row, col) != (home, KING_COL):
            return True
        return not (castling.has(piece.color, True) or castling.has(piece.color, False))
    if piece.kind is PieceKind.ROOK:
        for kingside in (True, False):
            if (row, col) == (home, ROOK_COL[kingside]):
                return not castling.has(piece.color, kingside)
        return True
    return False


def board_to_placement(board: Board) -> str:
    """Return the FEN placement field for ``board``."""
    ranks: List[str] = []
    for row in board:
        run = 0
        out = []
        for p in row:
            if p is None:
                run += 1
                continue
            if run:
                out.append(str(run))
                run = 0
            out.append(p.symbol)
        if run:
            out.append(str(run))
        ranks.append("".join(out))
    return "/".join(ranks)


def canonical_string(board: Board) -> str:
    """Board-only key for repetition tracking.

    Rows joined by ``|``, each cell ``color+kind`` (``"wp"``) or ``"--"``.
    Castling rights, en passant and clocks are deliberately left out.
    """
    return "|".join("".join(p.code if p is not None else "--" for p in row) for row in board)
