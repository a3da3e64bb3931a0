import importlib
import logging
from typing import Any, Callable, Dict, Optional, Type, TypeVar, Union

from heimdall_ltf.domain import (
    Binding,
    IServiceRegistry,
    RegistryState,
    UnresolvedDependency,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

CompositionRoot = Callable[[IServiceRegistry], None]


def load_composition_root(path: str) -> CompositionRoot:
    """Import a composition root from a ``module:attribute`` path.

    Args:
        path: Dotted module path and attribute name separated by a colon.

    Returns:
        The composition root callable.

    Raises:
        ValueError: If the path is not in ``module:attribute`` form.
    """
    module_name, _, attribute = path.partition(":")
    if not module_name or not attribute:
        raise ValueError(f"Composition root path must look like 'package.module:function', got '{path}'")
    module = importlib.import_module(module_name)
    return getattr(module, attribute)


class ServiceRegistry(IServiceRegistry):
    """Context-scoped store of contract-to-implementation bindings.

    The first resolve after construction or ``reset()`` runs the composition root
    exactly once, then looks the contract up. Bindings are singletons for the
    lifetime of the registry; a later ``register`` for the same contract replaces
    the earlier binding.

    Attributes:
        _state: Bindings and bootstrap flag.
        _composition_root: Callable (or ``module:attribute`` path) that registers
            every production binding.
    """

    def __init__(self, composition_root: Optional[Union[CompositionRoot, str]] = None) -> None:
        """Initialize an empty, not yet bootstrapped registry.

        Args:
            composition_root: Production wiring to run on first resolve. ``None``
                leaves the registry with explicit registrations only.
        """
        self._state = RegistryState()
        self._composition_root = composition_root

    @property
    def bootstrapped(self) -> bool:
        return self._state.bootstrapped

    def register(self, contract: Type[T], implementation: T) -> None:
        """Bind an implementation to a contract. Last write wins.

        Args:
            contract: The contract type used as lookup key.
            implementation: The instance shared by every resolver of the contract.

        Example:
            >>> registry.register(IClock, FixedClock(moment))
            >>> assert registry.resolve(IClock) is not None
        """
        if contract in self._state.bindings:
            logger.debug("Replacing binding for %s", contract.__name__)
        self._state.bindings[contract] = Binding(contract=contract, implementation=implementation)

    def resolve(self, contract: Type[T]) -> T:
        """Return the implementation bound to the contract.

        Bootstraps production bindings first when the registry has not been
        bootstrapped since construction or the last reset.

        Args:
            contract: The contract type to resolve.

        Returns:
            The exact instance that was registered for the contract.

        Raises:
            UnresolvedDependency: If no binding exists after bootstrap.
        """
        if not self._state.bootstrapped:
            self._bootstrap()

        binding = self._state.bindings.get(contract)
        if binding is None:
            raise UnresolvedDependency(contract)
        return binding.implementation

    def reset(self) -> None:
        """Clear all bindings and mark the registry as not bootstrapped."""
        self._state.clear()

    def get_bindings_copy(self) -> Dict[Type, Any]:
        return {contract: binding.implementation for contract, binding in self._state.bindings.items()}

    def ensure_bootstrapped(self) -> None:
        """Run the composition root now if it has not run since the last reset.

        Overrides registered after this call are not replaced by production
        bindings on the next resolve.
        """
        if not self._state.bootstrapped:
            self._bootstrap()

    def is_registered(self, contract: Type) -> bool:
        """Check for a binding without triggering bootstrap."""
        return contract in self._state.bindings

    def _bootstrap(self) -> None:
        # Marked first so the composition root may resolve what it already registered.
        self._state.bootstrapped = True
        if self._composition_root is None:
            return

        composition_root = self._composition_root
        if isinstance(composition_root, str):
            composition_root = load_composition_root(composition_root)

        logger.debug("Bootstrapping service registry")
        try:
            composition_root(self)
        except Exception:
            self._state.bootstrapped = False
            raise
