"""
CartStore: panier explicite avec méthodes de mutation et notification des changements.

Règles:
- au plus une ligne par clé (product_id, variant), quantité toujours >= 1;
- chaque mutation persiste la liste complète des lignes sous une clé fixe;
- un échec de persistance est journalisé puis ignoré: la mémoire fait foi pour la session;
- au chargement, une donnée absente ou corrompue donne un panier vide.
Le drapeau d'ouverture du tiroir (is_open) est éphémère et n'est jamais persisté.
"""
import json
import logging
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from storefront.config import CART_STORAGE_KEY
from .models import CartItem, CartKey
from .storage import KeyValueStorage

logger = logging.getLogger(__name__)

Listener = Callable[["CartStore"], None]
KeyLike = Union[CartKey, tuple, CartItem]

# module storefront.cart.store
def _as_key(key: KeyLike) -> CartKey:
    if isinstance(key, CartItem):
        return key.key
    if isinstance(key, CartKey):
        return key
    product_id, *rest = key
    return CartKey(str(product_id).strip(), str(rest[0] if rest else "").strip())


class CartStore:
    def __init__(self, storage: KeyValueStorage, storage_key: str = CART_STORAGE_KEY):
        self._storage = storage
        self.storage_key = storage_key
        self._items: List[CartItem] = []
        self._listeners: List[Listener] = []
        self.is_open = False
        self._items = self._load()

    # --- lecture ---

    @property
    def items(self) -> List[CartItem]:
        return [item.model_copy() for item in self._items]

    @property
    def total(self) -> Decimal:
        return sum((item.subtotal for item in self._items), Decimal("0.00"))

    @property
    def count(self) -> int:
        return sum(item.quantity for item in self._items)

    def is_empty(self) -> bool:
        return not self._items

    def get(self, key: KeyLike) -> Optional[CartItem]:
        idx = self._index(_as_key(key))
        return self._items[idx].model_copy() if idx is not None else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [item.model_dump(mode="json") for item in self._items],
            "total": str(self.total),
            "count": self.count,
            "is_open": self.is_open,
        }

    # --- mutations ---

    def add_item(self, item: CartItem, quantity: int = 1) -> None:
        """Ajoute `quantity` exemplaires; incrémente la ligne existante de même clé."""
        if quantity <= 0:
            logger.debug("cart.add_item ignored quantity=%s key=%s", quantity, item.key)
            return
        idx = self._index(item.key)
        if idx is not None:
            current = self._items[idx]
            self._items[idx] = current.model_copy(update={"quantity": current.quantity + quantity})
        else:
            self._items.append(item.model_copy(update={"quantity": quantity}))
        self._commit()

    def update_quantity(self, key: KeyLike, new_quantity: int) -> None:
        """Fixe la quantité; <= 0 équivaut à remove_item."""
        cart_key = _as_key(key)
        if new_quantity <= 0:
            self.remove_item(cart_key)
            return
        idx = self._index(cart_key)
        if idx is None:
            return
        self._items[idx] = self._items[idx].model_copy(update={"quantity": int(new_quantity)})
        self._commit()

    def remove_item(self, key: KeyLike) -> None:
        cart_key = _as_key(key)
        idx = self._index(cart_key)
        if idx is None:
            return
        del self._items[idx]
        self._commit()

    def clear(self) -> None:
        self._items = []
        try:
            self._storage.remove(self.storage_key)
        except Exception:
            logger.warning("cart.clear: suppression du stockage impossible key=%s", self.storage_key, exc_info=True)
        self._notify()

    def toggle_visibility(self) -> bool:
        self.is_open = not self.is_open
        self._notify()
        return self.is_open

    # --- observateurs ---

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Enregistre un observateur appelé après chaque mutation; retourne la fonction de désinscription."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)
        return _unsubscribe

    # --- interne ---

    def _index(self, key: CartKey) -> Optional[int]:
        for i, item in enumerate(self._items):
            if item.key == key:
                return i
        return None

    def _commit(self) -> None:
        self._persist()
        self._notify()

    def _persist(self) -> None:
        try:
            payload = json.dumps([item.model_dump(mode="json") for item in self._items])
            self._storage.set(self.storage_key, payload)
        except Exception:
            # Le panier en mémoire reste la référence pour la session
            logger.warning("cart.persist failed key=%s", self.storage_key, exc_info=True)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("cart listener failed")

    def _load(self) -> List[CartItem]:
        try:
            raw = self._storage.get(self.storage_key)
        except Exception:
            logger.warning("cart.load: stockage indisponible key=%s", self.storage_key, exc_info=True)
            return []
        if not raw:
            return []
        try:
            entries = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("cart.load: contenu corrompu ignoré key=%s", self.storage_key)
            return []
        if not isinstance(entries, list):
            return []

        items: List[CartItem] = []
        for entry in entries:
            try:
                item = CartItem.model_validate(entry)
            except (PydanticValidationError, TypeError, ValueError):
                continue
            # Fusion des doublons éventuels pour garantir une ligne par clé
            idx = next((i for i, it in enumerate(items) if it.key == item.key), None)
            if idx is None:
                items.append(item)
            else:
                items[idx] = items[idx].model_copy(update={"quantity": items[idx].quantity + item.quantity})
        return items
