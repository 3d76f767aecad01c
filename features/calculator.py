"""
Node-selection feature calculation.

Reads the node, its branching variable and global search state through the
interfaces in features.context and fills a FeatureVector. Only nodes created
by branching on a single variable are supported.
"""
import logging

import numpy as np

from .context import Node, SolverContext
from .errors import FeatureContractError
from .slots import BoundChgType, BoundType, BranchDir, NodeType, NodeselFeature as F
from .vector import FeatureVector

logger = logging.getLogger(__name__)

_NODETYPE_SLOT = {
    NodeType.SIBLING: F.TYPE_SIBLING,
    NodeType.CHILD: F.TYPE_CHILD,
    NodeType.LEAF: F.TYPE_LEAF,
}

_BRANCHDIR_SLOT = {
    BranchDir.DOWNWARDS: F.BRANCHVAR_PRIO_DOWN,
    BranchDir.UPWARDS: F.BRANCHVAR_PRIO_UP,
}


def _branching_change(node: Node):
    boundchgs = node.get_boundchgs()
    if not boundchgs:
        raise FeatureContractError("node has no bound changes")
    first = boundchgs[0]
    if first.boundchgtype != BoundChgType.BRANCHING:
        raise FeatureContractError(f"first bound change of node is {BoundChgType(first.boundchgtype).name}, not BRANCHING")
    for chg in boundchgs[1:]:
        if chg.boundchgtype != BoundChgType.BRANCHING:
            break
        if chg.var != first.var:
            raise FeatureContractError("branching on more than one variable is not supported")
    return first


def calc_nodesel_features(ctx: SolverContext, node: Node, feat: FeatureVector) -> FeatureVector:
    """Calculate node-selection features of `node` into `feat`.

    `feat.maxdepth` must be set. Overwrites vals, depth and boundtype.
    """
    feat.check_alive()
    if feat.maxdepth == 0:
        raise FeatureContractError("maxdepth must be set before calculating features")
    if feat.size < len(F):
        raise FeatureContractError(f"feature vector of size {feat.size} cannot hold {len(F)} node-selection features")
    depth = node.get_depth()
    if depth == 0:
        raise FeatureContractError("cannot calculate branching features of the root node")
    branchchg = _branching_change(node)

    nodetype = node.get_type()
    nodelowerbound = node.get_lowerbound()
    rootlowerbound = ctx.get_lowerbound_root()
    if rootlowerbound == 0:
        rootlowerbound = 0.1
    lowerbound = ctx.get_lowerbound()
    cutoffbound = ctx.get_cutoffbound()
    if ctx.get_n_sols_found() == 0:
        # no incumbent yet: pretend the cutoff is close to the lower bound
        cutoffbound = lowerbound + 0.2 * (cutoffbound - lowerbound)

    branchvar = branchchg.var
    branchbound = branchchg.newbound
    branchdirpreferred = branchvar.get_branch_direction()
    col = branchvar.get_col()
    varobj = col.get_obj()
    varcolsize = col.get_n_nonz()
    if varcolsize == 0:
        varcolsize = 0.1

    haslp = ctx.has_focus_node_lp()
    varsol = branchvar.get_sol(haslp)
    varrootsol = branchvar.get_root_sol()

    boundtype = BoundType(branchchg.boundtype)
    # feat is only written once every collaborator read has succeeded
    vals = np.zeros(feat.size, dtype=np.float64)

    vals[F.LOWERBOUND] = nodelowerbound / rootlowerbound
    vals[F.ESTIMATE] = node.get_estimate() / rootlowerbound
    if cutoffbound - lowerbound != 0:
        vals[F.RELATIVEBOUND] = (nodelowerbound - lowerbound) / (cutoffbound - lowerbound)

    slot = _NODETYPE_SLOT.get(nodetype)
    if slot is not None:
        vals[slot] = 1

    vals[F.BRANCHVAR_OBJCONSTR] = varobj / varcolsize
    vals[F.BRANCHVAR_BOUNDLPDIFF] = branchbound - varsol
    vals[F.BRANCHVAR_ROOTLPDIFF] = varrootsol - varsol

    slot = _BRANCHDIR_SLOT.get(branchdirpreferred)
    if slot is not None:
        vals[slot] = 1

    if varobj != 0:
        vals[F.BRANCHVAR_PSEUDOCOST] = branchvar.get_pseudocost(branchbound - varsol) / abs(varobj)
    else:
        logger.debug("Branching variable has zero objective coefficient; pseudocost ratio left at 0")

    direction = BranchDir.UPWARDS if boundtype == BoundType.LOWER else BranchDir.DOWNWARDS
    vals[F.BRANCHVAR_INF] = branchvar.get_avg_inferences(direction) / feat.maxdepth

    np.copyto(feat.vals, vals)
    feat.depth = depth
    feat.boundtype = boundtype
    return feat
