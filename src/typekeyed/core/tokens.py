from __future__ import annotations

import collections
import collections.abc as cabc
import types
import typing
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, Literal, TypeVar, overload

import numpy as np

from .errors import UnsupportedTypeForm

if TYPE_CHECKING:
    from .keys import QualifiedKey

T = TypeVar("T")

TokenKind = Literal["class", "none", "newtype", "annotated", "union", "literal", "array", "typeddict"]

# Origins whose single type parameter can be verified by iterating the value.
_COLLECTION_ORIGINS: frozenset[Any] = frozenset(
    {
        list,
        set,
        frozenset,
        collections.deque,
        cabc.Collection,
        cabc.Sequence,
        cabc.MutableSequence,
        cabc.Set,
        cabc.MutableSet,
    }
)

# Abstract numpy scalar types; arrays are matched with np.issubdtype instead of dtype equality.
_ABSTRACT_SCALARS: frozenset[type] = frozenset(
    {
        np.generic,
        np.number,
        np.integer,
        np.signedinteger,
        np.unsignedinteger,
        np.inexact,
        np.floating,
        np.complexfloating,
        np.flexible,
        np.character,
    }
)


def _type_name(cls: Any) -> str:
    if cls is type(None):
        return "None"
    module = getattr(cls, "__module__", None)
    name = getattr(cls, "__qualname__", None) or getattr(cls, "__name__", None) or repr(cls)
    if module in (None, "builtins"):
        return str(name)
    return f"{module}.{name}"


def _dtype_key(dt: np.dtype) -> str:
    if dt.fields is not None:
        return str(dt.descr)
    return dt.str


def _is_unsized(dt: np.dtype) -> bool:
    return dt.itemsize == 0 and dt.kind in "SUV"


def _checkable_origin(origin: Any, nargs: int) -> bool:
    if origin is type:
        return nargs == 1
    if origin is tuple:
        return True
    if isinstance(origin, type) and issubclass(origin, cabc.Mapping):
        return nargs == 2
    return origin in _COLLECTION_ORIGINS and nargs == 1


def _require_hashable(form: Any, values: tuple[Any, ...], what: str) -> None:
    for v in values:
        try:
            hash(v)
        except TypeError:
            raise UnsupportedTypeForm(form, f"{what} {v!r} is not hashable") from None


def _reject_static_protocol(form: Any, cls_obj: type) -> None:
    if getattr(cls_obj, "_is_protocol", False) and not getattr(cls_obj, "_is_runtime_protocol", False):
        raise UnsupportedTypeForm(form, "protocol is not @runtime_checkable")


def _scalar_from_dtype_arg(form: Any, arg: Any) -> Any:
    # np.floating[Any] and friends are aliases of the scalar class.
    scalar = typing.get_origin(arg) or arg
    if isinstance(scalar, type) and issubclass(scalar, np.generic):
        return scalar
    if arg is Any or isinstance(arg, TypeVar):
        return None
    raise UnsupportedTypeForm(form, f"cannot read dtype from {arg!r}")


@dataclass(frozen=True, eq=False, repr=False)
class TypeToken(Generic[T]):
    """A first-class value naming the type ``T``.

    Tokens are immutable and hashable. Two tokens compare equal iff they denote
    the same type; identity is taken from the type objects themselves, never
    from the shape of their values, so two classes with identical fields (or a
    ``NewType`` and its supertype) are always distinct.

    Each token can also check a runtime value (``matches``). Checks are deep for
    the builtin collections and the ``collections.abc`` Collection / Mapping
    families. Parameters of other generic origins (user ``Generic`` classes,
    ``Iterable``, ``Callable``, ...) still take part in equality but cannot be
    verified on a value; such tokens report ``erased``.

    Build tokens with ``TypeToken.of(...)`` or ``TypeToken.array(...)`` rather
    than the constructor.
    """

    kind: TokenKind
    name: str
    runtime_type: Any = None
    args: tuple["TypeToken[Any]", ...] = ()
    variadic: bool = False
    literals: tuple[Any, ...] = ()
    metadata: tuple[Any, ...] = ()
    newtype: Any = None
    dtype: np.dtype | None = None
    dtype_family: type | None = None
    ndim: int | None = None
    erased: bool = False
    field_names: tuple[str, ...] = ()
    required_keys: frozenset[str] = frozenset()
    _ident: tuple[Any, ...] = field(init=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_ident", self._compute_ident())

    def _compute_ident(self) -> tuple[Any, ...]:
        kind = self.kind
        if kind == "none":
            return ("none",)
        if kind == "newtype":
            return ("newtype", self.newtype)
        if kind == "annotated":
            return ("annotated", self.args[0]._ident, self.metadata)
        if kind == "union":
            return ("union", frozenset(a._ident for a in self.args))
        if kind == "literal":
            return ("literal", frozenset((type(v), v) for v in self.literals))
        if kind == "typeddict":
            return ("typeddict", self.runtime_type)
        if kind == "array":
            if self.dtype is not None:
                dt_key: Any = ("dtype", _dtype_key(self.dtype))
            elif self.dtype_family is not None:
                dt_key = ("family", self.dtype_family)
            else:
                dt_key = ("any",)
            return ("array", dt_key, -1 if self.ndim is None else self.ndim)
        return ("class", self.runtime_type, tuple(a._ident for a in self.args), self.variadic)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TypeToken):
            return NotImplemented
        return self._ident == other._ident

    def __hash__(self) -> int:
        return hash(self._ident)

    def __repr__(self) -> str:
        return f"TypeToken({self.name})"

    def __str__(self) -> str:
        return self.name

    # Construction

    @overload
    @classmethod
    def of(cls, tp: type[T]) -> "TypeToken[T]": ...

    @overload
    @classmethod
    def of(cls, tp: Any) -> "TypeToken[Any]": ...

    @classmethod
    def of(cls, tp: Any) -> "TypeToken[Any]":
        """Build the token for an annotation form (class, generic alias, union, ...)."""
        if isinstance(tp, TypeToken):
            return tp
        if tp is None or tp is type(None):
            return cls(kind="none", name="None", runtime_type=type(None))
        if tp is Any:
            raise UnsupportedTypeForm(tp, "Any does not name a concrete type")
        if tp is Ellipsis:
            raise UnsupportedTypeForm(tp, "'...' is only valid inside tuple[...] or Callable[...]")
        if isinstance(tp, (TypeVar, typing.ParamSpec)):
            raise UnsupportedTypeForm(tp, "type variables are not bound at runtime")
        if isinstance(tp, (str, typing.ForwardRef)):
            raise UnsupportedTypeForm(tp, "forward references are not resolved")
        if isinstance(tp, typing.NewType):
            inner = cls.of(tp.__supertype__)
            return cls(kind="newtype", name=tp.__name__, newtype=tp, args=(inner,), erased=inner.erased)

        origin = typing.get_origin(tp)
        args = typing.get_args(tp)

        if origin is typing.Annotated:
            inner = cls.of(args[0])
            metadata = tuple(args[1:])
            _require_hashable(tp, metadata, "metadata")
            meta_repr = ", ".join(repr(m) for m in metadata)
            return cls(
                kind="annotated",
                name=f"Annotated[{inner.name}, {meta_repr}]",
                args=(inner,),
                metadata=metadata,
                erased=inner.erased,
            )
        if origin is typing.Union or origin is types.UnionType:
            members = tuple(cls.of(a) for a in args)
            return cls(
                kind="union",
                name=" | ".join(m.name for m in members),
                args=members,
                erased=any(m.erased for m in members),
            )
        if origin is Literal:
            _require_hashable(tp, args, "literal")
            return cls(
                kind="literal",
                name=f"Literal[{', '.join(repr(a) for a in args)}]",
                literals=tuple(args),
            )
        if origin is np.ndarray:
            return cls._from_ndarray_alias(tp, args)
        if origin in (typing.ClassVar, typing.Final):
            raise UnsupportedTypeForm(tp, "qualifiers are not types")
        if origin is cabc.Callable:
            return cls._from_callable(tp, origin, args)
        if origin is not None:
            return cls._from_generic(tp, origin, args)
        if tp is np.ndarray:
            return cls.array()
        if typing.is_typeddict(tp):
            return cls._from_typeddict(tp)
        if isinstance(tp, type):
            _reject_static_protocol(tp, tp)
            return cls(kind="class", name=_type_name(tp), runtime_type=tp)
        raise UnsupportedTypeForm(tp)

    @classmethod
    def _from_generic(cls, tp: Any, origin: Any, args: tuple[Any, ...]) -> "TypeToken[Any]":
        if not isinstance(origin, type):
            raise UnsupportedTypeForm(tp)
        if typing.is_typeddict(origin):
            raise UnsupportedTypeForm(tp, "generic TypedDicts are not supported")
        _reject_static_protocol(tp, origin)
        variadic = False
        if origin is tuple and len(args) == 2 and args[1] is Ellipsis:
            variadic = True
            args = args[:1]
        elif origin is tuple and args == ((),):
            args = ()
        params = tuple(cls.of(a) for a in args)
        if not params:
            return cls(kind="class", name=_type_name(origin), runtime_type=origin)
        erased = not _checkable_origin(origin, len(params)) or any(p.erased for p in params)
        inner = ", ".join(p.name for p in params)
        if variadic:
            inner = f"{inner}, ..."
        return cls(
            kind="class",
            name=f"{_type_name(origin)}[{inner}]",
            runtime_type=origin,
            args=params,
            variadic=variadic,
            erased=erased,
        )

    @classmethod
    def _from_typeddict(cls, tp: Any) -> "TypeToken[Any]":
        try:
            hints = typing.get_type_hints(tp)
        except (NameError, TypeError) as exc:
            raise UnsupportedTypeForm(tp, f"cannot resolve field types ({exc})") from exc
        names = tuple(hints)
        members = tuple(cls.of(hints[n]) for n in names)
        return cls(
            kind="typeddict",
            name=_type_name(tp),
            runtime_type=tp,
            args=members,
            field_names=names,
            required_keys=frozenset(getattr(tp, "__required_keys__", names)),
            erased=any(m.erased for m in members),
        )

    @classmethod
    def _from_callable(cls, tp: Any, origin: Any, args: tuple[Any, ...]) -> "TypeToken[Any]":
        if not args:
            return cls(kind="class", name=_type_name(origin), runtime_type=origin)
        params, ret = args[0], args[-1]
        if params is Ellipsis:
            tokens: tuple[TypeToken[Any], ...] = (cls.of(ret),)
            name = f"Callable[..., {tokens[0].name}]"
            variadic = True
        elif isinstance(params, (list, tuple)):
            tokens = tuple(cls.of(p) for p in params) + (cls.of(ret),)
            name = f"Callable[[{', '.join(t.name for t in tokens[:-1])}], {tokens[-1].name}]"
            variadic = False
        else:
            raise UnsupportedTypeForm(tp, "parameter specifications are not supported")
        return cls(kind="class", name=name, runtime_type=origin, args=tokens, variadic=variadic, erased=True)

    @classmethod
    def _from_ndarray_alias(cls, tp: Any, args: tuple[Any, ...]) -> "TypeToken[Any]":
        ndim: int | None = None
        scalar: Any = None
        if len(args) == 2:
            shape, dtype_form = args
            if typing.get_origin(shape) is tuple:
                shape_args = typing.get_args(shape)
                if Ellipsis not in shape_args and Any not in shape_args:
                    ndim = 0 if shape_args == ((),) else len(shape_args)
            if typing.get_origin(dtype_form) is np.dtype:
                dtype_args = typing.get_args(dtype_form)
                if dtype_args:
                    scalar = _scalar_from_dtype_arg(tp, dtype_args[0])
            elif not (dtype_form is Any or isinstance(dtype_form, TypeVar)):
                raise UnsupportedTypeForm(tp, f"cannot read dtype from {dtype_form!r}")
        elif args:
            raise UnsupportedTypeForm(tp, "expected ndarray[shape, dtype]")
        return cls.array(scalar, ndim=ndim)

    @classmethod
    def array(cls, dtype: Any = None, *, ndim: int | None = None) -> "TypeToken[np.ndarray]":
        """Token for numpy arrays, optionally pinned to a dtype and a number of dimensions.

        ``dtype`` accepts anything ``np.dtype`` does, or an abstract scalar family
        such as ``np.floating`` (matched with ``np.issubdtype``).
        """
        if ndim is not None:
            if isinstance(ndim, bool) or not isinstance(ndim, int):
                raise TypeError(f"ndim must be an int, got {type(ndim).__name__}")
            if ndim < 0:
                raise ValueError(f"ndim must be >= 0, got {ndim}")

        dt: np.dtype | None = None
        family: type | None = None
        if isinstance(dtype, type) and dtype in _ABSTRACT_SCALARS:
            family = dtype
            dtype_name = dtype.__name__
        elif dtype is not None:
            dt = np.dtype(dtype)
            dtype_name = str(dt)
        else:
            dtype_name = "any"

        parts = [f"dtype={dtype_name}"]
        if ndim is not None:
            parts.append(f"ndim={ndim}")
        return cls(
            kind="array",
            name=f"ndarray[{', '.join(parts)}]",
            runtime_type=np.ndarray,
            dtype=dt,
            dtype_family=family,
            ndim=ndim,
        )

    def qualified(self, discriminator: Any = None) -> "QualifiedKey[T]":
        """Return the ``QualifiedKey`` for this token and ``discriminator``."""
        from .keys import QualifiedKey

        return QualifiedKey(self, discriminator)

    # Runtime checks

    def matches(self, value: Any) -> bool:
        """Return True if ``value`` belongs to the type this token names."""
        kind = self.kind
        if kind == "none":
            return value is None
        if kind in ("newtype", "annotated"):
            return self.args[0].matches(value)
        if kind == "union":
            return any(a.matches(value) for a in self.args)
        if kind == "literal":
            return any(type(value) is type(v) and value == v for v in self.literals)
        if kind == "array":
            return self._matches_array(value)
        if kind == "typeddict":
            return self._matches_typeddict(value)
        if not isinstance(value, self.runtime_type):
            return False
        if self.erased or not self.args:
            return True
        return self._matches_params(value)

    def _matches_typeddict(self, value: Any) -> bool:
        if not isinstance(value, cabc.Mapping):
            return False
        if not all(k in value for k in self.required_keys):
            return False
        fields = dict(zip(self.field_names, self.args))
        for k, v in value.items():
            member = fields.get(k)
            if member is None or not member.matches(v):
                return False
        return True

    def _matches_array(self, value: Any) -> bool:
        if not isinstance(value, np.ndarray):
            return False
        if self.ndim is not None and value.ndim != self.ndim:
            return False
        if self.dtype_family is not None:
            return bool(np.issubdtype(value.dtype, self.dtype_family))
        if self.dtype is not None:
            if _is_unsized(self.dtype):
                return value.dtype.kind == self.dtype.kind
            return value.dtype == self.dtype
        return True

    def _matches_params(self, value: Any) -> bool:
        origin = self.runtime_type
        if origin is type:
            return self.args[0]._accepts_class(value)
        if origin is tuple:
            if self.variadic:
                return all(self.args[0].matches(v) for v in value)
            if len(value) != len(self.args):
                return False
            return all(a.matches(v) for a, v in zip(self.args, value))
        if isinstance(value, cabc.Mapping):
            key_t, val_t = self.args
            return all(key_t.matches(k) and val_t.matches(v) for k, v in value.items())
        return all(self.args[0].matches(v) for v in value)

    def _accepts_class(self, cls_obj: Any) -> bool:
        if not isinstance(cls_obj, type):
            return False
        kind = self.kind
        if kind == "none":
            return cls_obj is type(None)
        if kind in ("newtype", "annotated"):
            return self.args[0]._accepts_class(cls_obj)
        if kind == "union":
            return any(a._accepts_class(cls_obj) for a in self.args)
        if kind == "array":
            return issubclass(cls_obj, np.ndarray)
        if kind == "class":
            return issubclass(cls_obj, self.runtime_type)
        return False
