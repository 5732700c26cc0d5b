"""
ActionExecutor - applies AI-proposed structural edits to a canvas.

An agent proposes a batch of actions (create, connect, modify, delete, ...).
Each action is validated with pydantic, resolved against the canvas store and
applied in order. After the batch, the canvas is laid out again from its
topology so new nodes land in a readable left-to-right flow.

Design decisions:
- Missing targets are reported as failed results, never raised; one bad
  action does not abort the rest of the batch
- Node references accept an exact ID, an exact title or an ID suffix
- Auto-layout runs only when at least two content nodes exist, anchored
  200 units left of the viewport centre (never left of x=100)
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Annotated, Any, Dict, List, Literal, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from ..config.settings import Settings, is_enabled
from ..core.canvas_store import CanvasStore
from ..layout.engines import LayoutEngine, get_engine
from ..models.canvas import EdgeWeight, NodeKind
from ..models.layout_metadata import BoundingBox, LayoutResult, NodePosition

logger = logging.getLogger(__name__)

# Minimum number of content nodes before a batch triggers layout
MIN_LAYOUT_NODES = 2
# Horizontal shift of the layout anchor from the viewport centre
LAYOUT_ANCHOR_OFFSET = 200
LAYOUT_ANCHOR_MIN_X = 100
# Margin between a reorganize group's frame and the nodes it wraps
GROUP_PADDING = 40


# ============================================================================
# Action schemas
# ============================================================================

class _ActionModel(BaseModel):
    """Accepts both snake_case and the camelCase keys agents usually emit."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SectionSpec(_ActionModel):
    title: str
    items: List[str] = Field(default_factory=list)


class SizeSpec(_ActionModel):
    width: float = Field(..., gt=0)
    height: float = Field(..., gt=0)


class CreateAction(_ActionModel):
    type: Literal["create"]
    node_type: NodeKind
    title: str
    description: Optional[str] = None
    sections: Optional[List[SectionSpec]] = None
    position: Optional[NodePosition] = None

    @model_validator(mode="after")
    def _no_groups(self) -> "CreateAction":
        if self.node_type == NodeKind.GROUP:
            raise ValueError("Use a 'create-group' action to create groups")
        return self


class CreateGroupAction(_ActionModel):
    type: Literal["create-group"]
    title: Optional[str] = None
    group_title: Optional[str] = None
    color: Optional[str] = None
    position: Optional[NodePosition] = None
    size: Optional[SizeSpec] = None


class ModifyAction(_ActionModel):
    type: Literal["modify"]
    node_id: str
    field: Literal["title", "description", "sections"]
    new_value: Union[str, List[SectionSpec]]

    @model_validator(mode="after")
    def _value_matches_field(self) -> "ModifyAction":
        if self.field == "sections" and isinstance(self.new_value, str):
            raise ValueError("'sections' expects a list of {title, items}")
        if self.field != "sections" and not isinstance(self.new_value, str):
            raise ValueError(f"'{self.field}' expects a string")
        return self


class ConnectAction(_ActionModel):
    type: Literal["connect"]
    source_node_id: Optional[str] = None
    target_node_id: Optional[str] = None
    source_title: Optional[str] = None
    target_title: Optional[str] = None
    weight: EdgeWeight = EdgeWeight.WEAK
    label: Optional[str] = None


class DeleteAction(_ActionModel):
    type: Literal["delete"]
    node_id: str
    reason: str = ""


class ReorganizeAction(_ActionModel):
    type: Literal["reorganize"]
    node_ids: List[str] = Field(default_factory=list)
    group_title: Optional[str] = None
    reason: str = ""


class AddSectionAction(_ActionModel):
    type: Literal["add-section"]
    node_id: str
    section_title: str
    items: Optional[List[str]] = None


class UpdateSectionAction(_ActionModel):
    type: Literal["update-section"]
    node_id: str
    section_id: str
    title: Optional[str] = None
    items: Optional[List[str]] = None


class DeleteSectionAction(_ActionModel):
    type: Literal["delete-section"]
    node_id: str
    section_id: str


AIAction = Annotated[
    Union[
        CreateAction,
        CreateGroupAction,
        ModifyAction,
        ConnectAction,
        DeleteAction,
        ReorganizeAction,
        AddSectionAction,
        UpdateSectionAction,
        DeleteSectionAction,
    ],
    Field(discriminator="type"),
]

_ACTION_ADAPTER = TypeAdapter(AIAction)


def parse_action(payload: Dict[str, Any]) -> AIAction:
    """Validate one action payload.

    Raises:
        pydantic.ValidationError: If the payload is malformed
    """
    return _ACTION_ADAPTER.validate_python(payload)


# ============================================================================
# Results
# ============================================================================

@dataclass
class ActionResult:
    """Outcome of a single action."""
    success: bool
    message: str
    node_id: Optional[str] = None
    edge_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class BatchResult:
    """Outcome of an action batch, including the follow-up layout."""
    results: List[ActionResult] = field(default_factory=list)
    layout: Optional[LayoutResult] = None

    @property
    def layout_applied(self) -> bool:
        return self.layout is not None

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "results": [r.to_dict() for r in self.results],
            "succeeded": self.succeeded,
            "failed": len(self.results) - self.succeeded,
            "layout_applied": self.layout_applied,
        }


# ============================================================================
# Executor
# ============================================================================

class ActionExecutor:
    """Applies AI actions to one canvas store."""

    def __init__(
        self,
        store: CanvasStore,
        layout_engine: Optional[LayoutEngine] = None,
        auto_layout: Optional[bool] = None,
        settings: Optional[Settings] = None,
    ):
        """Initialize the executor.

        Args:
            store: Canvas to mutate
            layout_engine: Engine for the post-batch layout (hierarchical by default)
            auto_layout: Override the 'auto_layout' feature flag
            settings: Supplies the default viewport centre
        """
        self.store = store
        self.layout_engine = layout_engine or get_engine("hierarchical")()
        self._auto_layout = auto_layout
        self.settings = settings or Settings.from_env()
        self._viewport_center: Tuple[float, float] = self.settings.viewport_center

        self._handlers = {
            "create": self._create,
            "create-group": self._create_group,
            "modify": self._modify,
            "connect": self._connect,
            "delete": self._delete,
            "reorganize": self._reorganize,
            "add-section": self._add_section,
            "update-section": self._update_section,
            "delete-section": self._delete_section,
        }

    @property
    def auto_layout(self) -> bool:
        if self._auto_layout is not None:
            return self._auto_layout
        return is_enabled("auto_layout")

    def execute(self, action: Union[AIAction, Dict[str, Any]]) -> ActionResult:
        """Apply one action.

        Malformed payloads and unresolvable targets produce a failed result.
        """
        if isinstance(action, dict):
            try:
                action = parse_action(action)
            except ValidationError as e:
                logger.warning(f"Rejected malformed action: {e.error_count()} error(s)")
                return ActionResult(
                    success=False,
                    message=f"Invalid action: {e.errors()[0]['msg']}",
                )

        handler = self._handlers[action.type]
        try:
            result = handler(action)
        except (KeyError, ValueError) as e:
            # Store lookups raise KeyError subclasses for vanished targets
            message = e.args[0] if e.args else str(e)
            result = ActionResult(success=False, message=str(message))

        if not result.success:
            logger.warning(f"Action '{action.type}' failed: {result.message}")
        return result

    def execute_batch(
        self,
        actions: Sequence[Union[AIAction, Dict[str, Any]]],
        viewport_center: Optional[Tuple[float, float]] = None,
    ) -> BatchResult:
        """Apply actions in order, then lay the canvas out again.

        Args:
            actions: Actions or raw payloads
            viewport_center: Client viewport centre; settings default otherwise

        Returns:
            BatchResult with one result per action
        """
        if viewport_center is None:
            viewport_center = self.settings.viewport_center
        self._viewport_center = (float(viewport_center[0]), float(viewport_center[1]))

        batch = BatchResult(results=[self.execute(action) for action in actions])

        if self.auto_layout:
            batch.layout = self.relayout()

        logger.info(
            f"Executed {len(batch.results)} action(s) on canvas {self.store.canvas_id}: "
            f"{batch.succeeded} succeeded, layout {'applied' if batch.layout_applied else 'skipped'}"
        )
        return batch

    def relayout(self) -> Optional[LayoutResult]:
        """Lay out content nodes from topology and write positions back.

        Returns:
            The LayoutResult, or None with fewer than two content nodes
        """
        snapshot = self.store.snapshot()
        content = snapshot.content_nodes()
        if len(content) < MIN_LAYOUT_NODES:
            return None

        center_x, center_y = self._viewport_center
        origin = NodePosition(
            x=max(LAYOUT_ANCHOR_MIN_X, center_x - LAYOUT_ANCHOR_OFFSET),
            y=center_y,
        )
        edges = snapshot.valid_edges({n.id for n in content})

        result = self.layout_engine.layout(content, edges, origin)
        self.store.apply_positions(result.positions)
        return result

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _default_position(self, position: Optional[NodePosition]) -> Tuple[float, float]:
        if position is not None:
            return position.x, position.y
        return self._viewport_center

    def _create(self, action: CreateAction) -> ActionResult:
        x, y = self._default_position(action.position)
        node_id = self.store.add_node(
            action.node_type,
            x,
            y,
            title=action.title,
            description=action.description or "",
            sections=[s.model_dump() for s in action.sections or []],
        )
        return ActionResult(
            success=True,
            message=f'Created {action.node_type.value} node: "{action.title}"',
            node_id=node_id,
        )

    def _create_group(self, action: CreateGroupAction) -> ActionResult:
        x, y = self._default_position(action.position)
        title = action.group_title or action.title or "New Section"
        group_id = self.store.add_group(
            x,
            y,
            width=action.size.width if action.size else None,
            height=action.size.height if action.size else None,
            title=title,
            color=action.color,
        )
        return ActionResult(success=True, message=f'Created group: "{title}"', node_id=group_id)

    def _modify(self, action: ModifyAction) -> ActionResult:
        node = self.store.find_node(action.node_id)
        if node is None:
            return ActionResult(success=False, message=f"Node not found: {action.node_id}")

        if action.field == "sections":
            value = [s.model_dump() for s in action.new_value]
        else:
            value = action.new_value
        self.store.update_node_data(node.id, **{action.field: value})

        return ActionResult(
            success=True,
            message=f'Modified {action.field} of node "{node.title}"',
            node_id=node.id,
        )

    def _resolve_endpoint(self, node_id: Optional[str], title: Optional[str]):
        node = self.store.find_node(node_id)
        if node is None and title:
            node = self.store.find_node(title)
        return node

    def _connect(self, action: ConnectAction) -> ActionResult:
        source = self._resolve_endpoint(action.source_node_id, action.source_title)
        target = self._resolve_endpoint(action.target_node_id, action.target_title)

        if source is None or target is None:
            source_ref = action.source_title or action.source_node_id or "unknown"
            target_ref = action.target_title or action.target_node_id or "unknown"
            return ActionResult(
                success=False,
                message=(
                    f'One or both nodes not found: Source "{source_ref}", '
                    f'Target "{target_ref}"'
                ),
            )

        edge_id = self.store.connect(source.id, target.id, action.weight, action.label)
        suffix = f' with label "{action.label}"' if action.label else ""
        return ActionResult(
            success=True,
            message=f'Connected "{source.title}" to "{target.title}"{suffix}',
            edge_id=edge_id,
        )

    def _delete(self, action: DeleteAction) -> ActionResult:
        node = self.store.find_node(action.node_id)
        if node is None:
            return ActionResult(success=False, message=f"Node not found: {action.node_id}")

        self.store.delete_node(node.id)
        return ActionResult(
            success=True,
            message=f'Deleted node: "{node.title or "Untitled"}"',
            node_id=node.id,
        )

    def _reorganize(self, action: ReorganizeAction) -> ActionResult:
        members = [self.store.find_node(ref) for ref in action.node_ids]
        members = [n for n in members if n is not None and not n.is_group]
        title = action.group_title or "New Group"

        if members:
            box = BoundingBox.from_rectangles((n.x, n.y, *n.size()) for n in members)
            group_id = self.store.add_group(
                box.min_x - GROUP_PADDING,
                box.min_y - GROUP_PADDING,
                width=box.width + 2 * GROUP_PADDING,
                height=box.height + 2 * GROUP_PADDING,
                title=title,
            )
        else:
            x, y = self._viewport_center
            group_id = self.store.add_group(x, y, title=title)

        return ActionResult(
            success=True,
            message=f'Created group "{title}" for reorganization',
            node_id=group_id,
        )

    def _add_section(self, action: AddSectionAction) -> ActionResult:
        node = self.store.find_node(action.node_id)
        if node is None:
            return ActionResult(success=False, message=f"Node not found: {action.node_id}")

        self.store.add_section(node.id, action.section_title, action.items)
        return ActionResult(
            success=True,
            message=f'Added section "{action.section_title}" to node',
            node_id=node.id,
        )

    def _update_section(self, action: UpdateSectionAction) -> ActionResult:
        node = self.store.find_node(action.node_id)
        if node is None:
            return ActionResult(success=False, message=f"Node not found: {action.node_id}")

        self.store.update_section(node.id, action.section_id, action.title, action.items)
        return ActionResult(success=True, message="Updated section in node", node_id=node.id)

    def _delete_section(self, action: DeleteSectionAction) -> ActionResult:
        node = self.store.find_node(action.node_id)
        if node is None:
            return ActionResult(success=False, message=f"Node not found: {action.node_id}")

        self.store.delete_section(node.id, action.section_id)
        return ActionResult(success=True, message="Deleted section from node", node_id=node.id)
