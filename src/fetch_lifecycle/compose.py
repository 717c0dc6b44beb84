"""
Capability composition by delegation and member mixing.

compose(base, *mixins) builds a Composite that delegates attribute lookup to
``base`` and owns every member copied from the mixins. Traits may be classes,
mappings, plain objects or other Composites:

    ajax = compose(RequestLifecycle, EventBus, {"registry": registry})

Functions that come from a class trait behave as methods of the composed
object, including functions reached through delegation, also when the base
is an instance. Values that come from mappings or instance attributes are
returned exactly as stored.
"""
import inspect
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Mapping, MutableMapping, Optional, Tuple

POST_COMPOSE_HOOK = "post_compose"


@dataclass(frozen=True)
class Member:
    """A copied member and whether it binds like a class attribute."""

    value: Any
    descriptor: bool = False

    def bind(self, owner: Any) -> Any:
        if self.descriptor and hasattr(self.value, "__get__"):
            return self.value.__get__(owner, type(owner))
        return self.value


def _is_dunder(name: str) -> bool:
    return name.startswith("__") and name.endswith("__")


def members_of(source: Any) -> Iterator[Tuple[str, Member]]:
    """Yield the own public members of a trait, in definition order."""
    if isinstance(source, Composite):
        yield from source._own_members().items()
        return

    if isinstance(source, Mapping):
        for name, value in source.items():
            yield name, Member(value)
        return

    if isinstance(source, type):
        for name, value in vars(source).items():
            if not _is_dunder(name):
                yield name, Member(value, descriptor=True)
        return

    for name, value in vars(source).items():
        if not _is_dunder(name):
            yield name, Member(value)


def defines(target: Any, name: str) -> bool:
    """Whether a name is already defined on a mixing target."""
    if isinstance(target, Composite):
        return target._lookup(name) is not None
    if isinstance(target, Mapping):
        return name in target
    return hasattr(target, name)


def _write(target: Any, name: str, member: Member) -> None:
    if isinstance(target, Composite):
        target._own_members()[name] = member
    elif isinstance(target, MutableMapping):
        target[name] = member.value
    else:
        setattr(target, name, member.bind(target))


def mixin(target: Any, source: Any) -> Any:
    """Copy every member of source into target, overwriting. Returns target."""
    for name, member in members_of(source):
        _write(target, name, member)
    return target


def mixin_if(target: Any, source: Any) -> Any:
    """Copy members of source that target does not define yet. Returns target."""
    for name, member in members_of(source):
        if not defines(target, name):
            _write(target, name, member)
    return target


class Composite:
    """Object whose missing attributes are looked up on a delegate base."""

    def __init__(self, base: Any) -> None:
        object.__setattr__(self, "_base", base)
        object.__setattr__(self, "_members", {})

    def _own_members(self) -> Dict[str, Member]:
        return object.__getattribute__(self, "_members")

    def _lookup(self, name: str) -> Optional[Member]:
        """Find a member on this object or along its delegation chain."""
        members = self._own_members()
        if name in members:
            return members[name]

        base = object.__getattribute__(self, "_base")
        if isinstance(base, Composite):
            return base._lookup(name)
        if isinstance(base, Mapping):
            return Member(base[name]) if name in base else None
        if isinstance(base, type):
            try:
                return Member(inspect.getattr_static(base, name), descriptor=True)
            except AttributeError:
                return None
        instance_vars = getattr(base, "__dict__", {})
        if name in instance_vars:
            return Member(instance_vars[name])
        # Class members of an instance base bind to the composed object.
        try:
            value = inspect.getattr_static(type(base), name)
        except AttributeError:
            pass
        else:
            if not inspect.ismemberdescriptor(value):
                return Member(value, descriptor=True)
        if hasattr(base, name):
            return Member(getattr(base, name))
        return None

    def __getattr__(self, name: str) -> Any:
        if _is_dunder(name):
            raise AttributeError(name)
        member = self._lookup(name)
        if member is None:
            raise AttributeError(
                f"{type(self).__name__!r} object has no attribute {name!r}"
            )
        return member.bind(self)

    def __setattr__(self, name: str, value: Any) -> None:
        self._own_members()[name] = Member(value)

    def __delattr__(self, name: str) -> None:
        try:
            del self._own_members()[name]
        except KeyError:
            raise AttributeError(name) from None

    def __dir__(self):
        names = set(self._own_members())
        base = object.__getattribute__(self, "_base")
        names.update(dir(base) if not isinstance(base, Mapping) else base.keys())
        return sorted(names)

    def __repr__(self) -> str:
        base = object.__getattribute__(self, "_base")
        base_name = getattr(base, "__name__", type(base).__name__)
        return f"<Composite of {base_name} with {len(self._own_members())} members>"


def _build(base: Any, mixins: Tuple[Any, ...], mix) -> Composite:
    obj = Composite(base)
    for source in mixins:
        mix(obj, source)

    hook = getattr(obj, POST_COMPOSE_HOOK, None)
    if callable(hook):
        hook(*mixins)
    return obj


def compose(base: Any, *mixins: Any) -> Composite:
    """
    Create a new object delegating to base, with mixins copied in order.

    Later mixins overwrite members of earlier ones. If the result exposes a
    ``post_compose`` hook it is called with the mixins so the object can do
    derived initialization. Neither base nor the mixins are modified.
    """
    return _build(base, mixins, mixin)


def compose_if(base: Any, *mixins: Any) -> Composite:
    """Like compose, but members already defined are never overwritten."""
    return _build(base, mixins, mixin_if)
