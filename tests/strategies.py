"""Hypothesis strategies shared by property tests."""

from __future__ import annotations

from hypothesis import strategies as st

from discord_rpc.constants import OpCode

json_scalars = (
    st.none()
    | st.booleans()
    | st.integers(min_value=-(2**53), max_value=2**53)
    | st.text(max_size=40)
)

json_values = st.recursive(
    json_scalars,
    lambda children: (
        st.lists(children, max_size=5) | st.dictionaries(st.text(max_size=10), children, max_size=5)
    ),
    max_leaves=20,
)

json_objects = st.dictionaries(st.text(max_size=12), json_values, max_size=6)

opcodes = st.sampled_from(list(OpCode))

frames = st.tuples(opcodes, json_objects)

short_text = st.text(
    alphabet=st.characters(exclude_categories=("Cs",)),
    min_size=1,
    max_size=128,
).filter(lambda value: value.strip() != "")


@st.composite
def chunkings(draw: st.DrawFn, data: bytes) -> list[bytes]:
    """Split *data* at arbitrary positions, including empty and 1-byte chunks."""
    if not data:
        return [data]
    cuts = draw(st.lists(st.integers(min_value=0, max_value=len(data)), max_size=12))
    bounds = [0, *sorted(cuts), len(data)]
    return [data[start:end] for start, end in zip(bounds, bounds[1:], strict=False)]


@st.composite
def activities(draw: st.DrawFn) -> dict[str, object]:
    """Valid activity mappings using both nested and flat spellings."""
    activity: dict[str, object] = {"name": draw(short_text)}
    if draw(st.booleans()):
        activity["details"] = draw(short_text)
    if draw(st.booleans()):
        activity["state"] = draw(short_text)
    if draw(st.booleans()):
        start = draw(st.integers(min_value=0, max_value=2**41))
        activity["start_timestamp"] = start
        if draw(st.booleans()):
            activity["end_timestamp"] = start + draw(st.integers(min_value=0, max_value=10**9))
    if draw(st.booleans()):
        maximum = draw(st.integers(min_value=1, max_value=100))
        activity["party"] = {"size": [draw(st.integers(min_value=1, max_value=maximum)), maximum]}
    return activity
