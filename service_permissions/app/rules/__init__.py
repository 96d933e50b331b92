"""
Permission rules package.

Defines how a state's declared access policy is normalized and evaluated.

Modules of interest:
- models: Transition context, redirect targets, policies and results.
- stores: Contracts of the role and permission definition stores.
- redirect: Normalization and resolution of ``redirectTo`` rules.
- permission_map: The normalized rule set of a single state.
- composite: Merging rule sets along a chain of nested states.
- engine: Deny-first evaluation against the definition stores.
"""
