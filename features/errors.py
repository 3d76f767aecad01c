class FeatureContractError(RuntimeError):
    """Raised when a feature vector or solver node is used outside its contract.

    These are caller bugs (unset depth, mismatched sizes, root node...), so the
    core never catches them.
    """
