"""
libsvm-format serialization of feature vectors.

A line is "<label> <index>:<value> ...\\n" with 1-based indices in
non-decreasing order. Each vector is written at its own offset (see
features.vector.get_offset), so a diff of two vectors from different depth
deciles or bound types occupies two separate index blocks.
"""
from typing import List, TextIO, Tuple

from .errors import FeatureContractError
from .vector import FeatureVector, get_offset


def _check_calculated(feat: FeatureVector):
    feat.check_alive()
    if feat.depth == 0:
        raise FeatureContractError("feature vector has not been calculated (depth is 0)")


def _pair(index: int, value: float) -> str:
    # values that print as zero are written without a sign
    return "%d:%f" % (index, float("%f" % value) + 0.0)


def libsvm_format(feat: FeatureVector, label: int) -> str:
    """Return the libsvm line for a single vector."""
    _check_calculated(feat)
    offset = get_offset(feat)
    fields = ["%d" % label]
    fields.extend(_pair(i + offset + 1, v) for i, v in enumerate(feat.vals))
    return " ".join(fields) + "\n"


def libsvm_diff_format(feat1: FeatureVector, feat2: FeatureVector, label: int, negate: bool = False) -> str:
    """Return the libsvm line for feat1 - feat2.

    With `negate` the vectors swap roles and the label changes sign, which gives
    the mirrored example of a ranking pair.
    """
    _check_calculated(feat1)
    _check_calculated(feat2)
    if feat1.size != feat2.size:
        raise FeatureContractError(f"cannot diff vectors of size {feat1.size} and {feat2.size}")

    if negate:
        feat1, feat2 = feat2, feat1
        label = -label

    offset1 = get_offset(feat1)
    offset2 = get_offset(feat2)
    fields = ["%d" % label]

    if offset1 == offset2:
        fields.extend(_pair(i + offset1 + 1, v1 - v2) for i, (v1, v2) in enumerate(zip(feat1.vals, feat2.vals)))
    else:
        block1 = [_pair(i + offset1 + 1, v) for i, v in enumerate(feat1.vals)]
        block2 = [_pair(i + offset2 + 1, -v) for i, v in enumerate(feat2.vals)]
        # libsvm wants sorted indices: smaller offset first
        if offset1 < offset2:
            fields.extend(block1 + block2)
        else:
            fields.extend(block2 + block1)

    return " ".join(fields) + "\n"


def libsvm_print(file: TextIO, feat: FeatureVector, label: int):
    """Write a single vector as one libsvm line."""
    file.write(libsvm_format(feat, label))


def libsvm_diff_print(file: TextIO, feat1: FeatureVector, feat2: FeatureVector, label: int, negate: bool = False):
    """Write feat1 - feat2 as one libsvm line."""
    file.write(libsvm_diff_format(feat1, feat2, label, negate))


def parse_libsvm_line(line: str) -> Tuple[int, List[Tuple[int, float]]]:
    """Split a libsvm line back into its label and (index, value) pairs."""
    parts = line.split()
    if not parts:
        raise ValueError("empty libsvm line")
    label = int(parts[0])
    pairs = []
    for token in parts[1:]:
        index, sep, value = token.partition(':')
        if not sep:
            raise ValueError(f"malformed libsvm field {token!r}")
        pairs.append((int(index), float(value)))
    return label, pairs
