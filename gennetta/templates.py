# File: gennetta/templates.py
"""
GenNetta - Code Template Engine
===============================
Turns ``TableDefinition`` records and a ``GenerationConfig`` into the source
files of an ASP.NET Core MVC + Web API project:

    1. EF Core entity models (data annotations)
    2. Repository interface + implementation
    3. API controllers and MVC controllers
    4. Razor views (Index / Details / Create / Edit / Delete)
    5. Service layer
    6. Shared scaffolding: solution, project file, Program.cs, DbContext,
       appsettings, layout, home page, static assets, README

**Determinism contract:**
    - Same tables, same column lists, same order → byte-identical output.
    - No timestamps, no random identifiers (GUIDs are derived with uuid5).

**Lookup contract:**
    - Every requested table is resolved before anything is rendered; an
      unknown name raises ``TableLookupError``.

All string assembly uses the ``List[str]`` + ``"\\n".join()`` pattern.
"""

from __future__ import annotations

import json
import logging
from typing import Dict, List, Optional, Sequence

from gennetta.errors import TableLookupError
from gennetta.models import (
    ColumnDefinition,
    CSharpType,
    GeneratedFile,
    GenerationConfig,
    GenerationResult,
    SchemaSnapshot,
    TableDefinition,
)
from gennetta.utils import deterministic_guid, safe_identifier, to_plural

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("gennetta.templates")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_I1: str = "    "
_I2: str = _I1 * 2
_I3: str = _I1 * 3
_I4: str = _I1 * 4

# Visual Studio project type GUID for SDK-style C# projects
_CSHARP_PROJECT_TYPE_GUID: str = "9A19103F-16F7-4668-BE54-9A1E7A4F7556"

# Relative paths of the per-table artifacts, keyed by artifact kind
PER_TABLE_ARTIFACTS: Dict[str, str] = {
    "model": "Models/{cls}.cs",
    "repository": "Repositories/{cls}Repository.cs",
    "api_controller": "Controllers/{cls}ApiController.cs",
    "mvc_controller": "Controllers/{cls}Controller.cs",
    "index_view": "Views/{cls}/Index.cshtml",
    "details_view": "Views/{cls}/Details.cshtml",
    "create_view": "Views/{cls}/Create.cshtml",
    "edit_view": "Views/{cls}/Edit.cshtml",
    "delete_view": "Views/{cls}/Delete.cshtml",
    "service": "Services/{cls}Service.cs",
}


# ---------------------------------------------------------------------------
# Naming helpers
# ---------------------------------------------------------------------------


def class_name_for(table: TableDefinition) -> str:
    """C# class name for *table* (the table name made identifier-safe)."""
    return safe_identifier(table.name)


def property_name_for(table: TableDefinition, column: ColumnDefinition) -> str:
    """
    C# property name for *column*.

    A member cannot share its enclosing type's name, so a ``Status`` column
    in a ``Status`` table becomes ``StatusValue``.
    """
    prop: str = safe_identifier(column.name)
    if prop == class_name_for(table):
        prop += "Value"
    return prop


def _needs_column_attribute(table: TableDefinition, column: ColumnDefinition) -> bool:
    return property_name_for(table, column) != column.name


def _key_is_value_type(table: TableDefinition) -> bool:
    return table.key_type not in (CSharpType.STRING.value, CSharpType.BYTES.value)


def _key_property(table: TableDefinition) -> str:
    pk: Optional[ColumnDefinition] = table.primary_key
    return property_name_for(table, pk) if pk is not None else "Id"


def _route_segment(table: TableDefinition) -> str:
    return to_plural(class_name_for(table)).lower()


# ---------------------------------------------------------------------------
# Template generator
# ---------------------------------------------------------------------------


class TemplateGenerator:
    """
    Stateless code-generation engine.

    Each ``generate_*`` method returns one complete file as a string.
    ``generate_all`` produces the whole project for a selection of tables.
    """

    def __init__(self, config: Optional[GenerationConfig] = None) -> None:
        self._config: GenerationConfig = config or GenerationConfig()
        self._ns: str = self._config.project_name
        logger.debug("TemplateGenerator initialised (project=%s).", self._ns)

    @property
    def config(self) -> GenerationConfig:
        return self._config

    def project_path(self, relative: str) -> str:
        """Path of *relative* inside the project directory."""
        return f"{self._ns}/{relative}"

    # ===================================================================
    # 1. Entity model
    # ===================================================================

    def generate_entity_model(self, table: TableDefinition) -> str:
        """
        Entity class with data annotations.

        ``[Key]`` marks the primary key, non-null strings get ``[Required]``
        and a ``string.Empty`` initialiser, bounded character types get
        ``[MaxLength]``, nullable value types get ``?``.
        """
        cls: str = class_name_for(table)
        lines: List[str] = [
            f"// Generated Entity Model for {table.name} table",
            "using System.ComponentModel.DataAnnotations;",
            "using System.ComponentModel.DataAnnotations.Schema;",
            "using Microsoft.EntityFrameworkCore;",
            "",
            f"namespace {self._ns}.Models",
            "{",
            f"{_I1}public class {cls}",
            f"{_I1}{{",
        ]

        blocks: List[List[str]] = [self._entity_property(table, col) for col in table.columns]
        for index, block in enumerate(blocks):
            if index:
                lines.append("")
            lines.extend(block)

        lines.append(f"{_I1}}}")
        lines.append("}")
        lines.append("")
        return "\n".join(lines)

    def _entity_property(self, table: TableDefinition, col: ColumnDefinition) -> List[str]:
        attributes: List[str] = []
        if col.is_primary_key:
            attributes.append("[Key]")
        if _needs_column_attribute(table, col):
            attributes.append(f'[Column("{col.name}")]')
        if col.is_string and not col.nullable:
            attributes.append("[Required]")
        if col.is_string and "char" in col.source_type.lower() and not col.is_unbounded:
            attributes.append(f"[MaxLength({col.max_length or 255})]")

        initialiser: str = ""
        if col.is_string and not col.nullable:
            initialiser = " = string.Empty;"
        elif (
            col.is_audit_created
            and not col.nullable
            and col.target_type == CSharpType.DATETIME.value
        ):
            initialiser = " = DateTime.UtcNow;"

        prop: str = property_name_for(table, col)
        block: List[str] = [f"{_I2}{attr}" for attr in attributes]
        block.append(f"{_I2}public {col.property_type} {prop} {{ get; set; }}{initialiser}")
        return block

    # ===================================================================
    # 2. Repository
    # ===================================================================

    def generate_repository(self, table: TableDefinition) -> str:
        """Repository interface and EF Core implementation in one file."""
        cls: str = class_name_for(table)
        kt: str = table.key_type
        dbset: str = cls
        lines: List[str] = [
            "using Microsoft.EntityFrameworkCore;",
            f"using {self._ns}.Models;",
            "",
            f"namespace {self._ns}.Repositories",
            "{",
            f"{_I1}public interface I{cls}Repository",
            f"{_I1}{{",
            f"{_I2}Task<IEnumerable<{cls}>> GetAllAsync();",
            f"{_I2}Task<{cls}?> GetByIdAsync({kt} id);",
            f"{_I2}Task<{cls}> CreateAsync({cls} entity);",
            f"{_I2}Task<{cls}> UpdateAsync({cls} entity);",
            f"{_I2}Task DeleteAsync({kt} id);",
            f"{_I1}}}",
            "",
            f"{_I1}public class {cls}Repository : I{cls}Repository",
            f"{_I1}{{",
            f"{_I2}private readonly ApplicationDbContext _context;",
            "",
            f"{_I2}public {cls}Repository(ApplicationDbContext context)",
            f"{_I2}{{",
            f"{_I3}_context = context;",
            f"{_I2}}}",
            "",
            f"{_I2}public async Task<IEnumerable<{cls}>> GetAllAsync()",
            f"{_I2}{{",
            f"{_I3}return await _context.{dbset}.ToListAsync();",
            f"{_I2}}}",
            "",
            f"{_I2}public async Task<{cls}?> GetByIdAsync({kt} id)",
            f"{_I2}{{",
            f"{_I3}return await _context.{dbset}.FindAsync(id);",
            f"{_I2}}}",
            "",
            f"{_I2}public async Task<{cls}> CreateAsync({cls} entity)",
            f"{_I2}{{",
            f"{_I3}_context.{dbset}.Add(entity);",
            f"{_I3}await _context.SaveChangesAsync();",
            f"{_I3}return entity;",
            f"{_I2}}}",
            "",
            f"{_I2}public async Task<{cls}> UpdateAsync({cls} entity)",
            f"{_I2}{{",
        ]

        updated: Optional[ColumnDefinition] = table.updated_audit_column
        if updated is not None:
            lines.append(f"{_I3}entity.{property_name_for(table, updated)} = DateTime.UtcNow;")

        lines.extend([
            f"{_I3}_context.Entry(entity).State = EntityState.Modified;",
            f"{_I3}await _context.SaveChangesAsync();",
            f"{_I3}return entity;",
            f"{_I2}}}",
            "",
            f"{_I2}public async Task DeleteAsync({kt} id)",
            f"{_I2}{{",
            f"{_I3}var entity = await _context.{dbset}.FindAsync(id);",
            f"{_I3}if (entity != null)",
            f"{_I3}{{",
            f"{_I4}_context.{dbset}.Remove(entity);",
            f"{_I4}await _context.SaveChangesAsync();",
            f"{_I3}}}",
            f"{_I2}}}",
            f"{_I1}}}",
            "}",
            "",
        ])
        return "\n".join(lines)

    # ===================================================================
    # 3a. API controller
    # ===================================================================

    def generate_api_controller(self, table: TableDefinition) -> str:
        """REST controller under ``api/<plural>`` backed by the repository."""
        cls: str = class_name_for(table)
        kt: str = table.key_type
        key: str = _key_property(table)
        server_error: str = 'return StatusCode(500, $"Internal server error: {ex.Message}");'

        def guarded(body: List[str]) -> List[str]:
            block: List[str] = [f"{_I2}{{", f"{_I3}try", f"{_I3}{{"]
            block.extend(f"{_I4}{line}" if line else "" for line in body)
            block.extend([
                f"{_I3}}}",
                f"{_I3}catch (Exception ex)",
                f"{_I3}{{",
                f"{_I4}{server_error}",
                f"{_I3}}}",
                f"{_I2}}}",
            ])
            return block

        lines: List[str] = [
            "using Microsoft.AspNetCore.Mvc;",
            f"using {self._ns}.Models;",
            f"using {self._ns}.Repositories;",
            "",
            f"namespace {self._ns}.Controllers",
            "{",
            f"{_I1}[ApiController]",
            f'{_I1}[Route("api/{_route_segment(table)}")]',
            f"{_I1}public class {cls}ApiController : ControllerBase",
            f"{_I1}{{",
            f"{_I2}private readonly I{cls}Repository _repository;",
            "",
            f"{_I2}public {cls}ApiController(I{cls}Repository repository)",
            f"{_I2}{{",
            f"{_I3}_repository = repository;",
            f"{_I2}}}",
            "",
            f"{_I2}[HttpGet]",
            f"{_I2}public async Task<ActionResult<IEnumerable<{cls}>>> GetAll()",
        ]
        lines.extend(guarded([
            "var entities = await _repository.GetAllAsync();",
            "return Ok(entities);",
        ]))
        lines.extend([
            "",
            f'{_I2}[HttpGet("{{id}}")]',
            f"{_I2}public async Task<ActionResult<{cls}>> GetById({kt} id)",
        ])
        lines.extend(guarded([
            "var entity = await _repository.GetByIdAsync(id);",
            "if (entity == null)",
            f'    return NotFound($"{cls} with ID {{id}} not found");',
            "return Ok(entity);",
        ]))
        lines.extend([
            "",
            f"{_I2}[HttpPost]",
            f"{_I2}public async Task<ActionResult<{cls}>> Create({cls} entity)",
        ])
        lines.extend(guarded([
            "if (!ModelState.IsValid)",
            "    return BadRequest(ModelState);",
            "",
            "var created = await _repository.CreateAsync(entity);",
            f"return CreatedAtAction(nameof(GetById), new {{ id = created.{key} }}, created);",
        ]))
        lines.extend([
            "",
            f'{_I2}[HttpPut("{{id}}")]',
            f"{_I2}public async Task<IActionResult> Update({kt} id, {cls} entity)",
        ])
        lines.extend(guarded([
            f"if (id != entity.{key})",
            '    return BadRequest("ID mismatch");',
            "",
            "if (!ModelState.IsValid)",
            "    return BadRequest(ModelState);",
            "",
            "await _repository.UpdateAsync(entity);",
            "return NoContent();",
        ]))
        lines.extend([
            "",
            f'{_I2}[HttpDelete("{{id}}")]',
            f"{_I2}public async Task<IActionResult> Delete({kt} id)",
        ])
        lines.extend(guarded([
            "await _repository.DeleteAsync(id);",
            "return NoContent();",
        ]))
        lines.extend([f"{_I1}}}", "}", ""])
        return "\n".join(lines)

    # ===================================================================
    # 3b. MVC controller
    # ===================================================================

    def bindable_columns(self, table: TableDefinition, include_key: bool = False) -> List[str]:
        """Property names accepted by ``[Bind]``: no audit columns, key only on edit."""
        return [
            property_name_for(table, col)
            for col in table.columns
            if (include_key or not col.is_primary_key) and not col.is_audit
        ]

    def generate_mvc_controller(self, table: TableDefinition) -> str:
        """Controller serving the Razor CRUD views."""
        cls: str = class_name_for(table)
        kt: str = table.key_type
        key: str = _key_property(table)
        id_value: str = "id.Value" if _key_is_value_type(table) else "id"
        route: str = _route_segment(table)
        create_bind: str = ",".join(self.bindable_columns(table))
        edit_bind: str = ",".join(self.bindable_columns(table, include_key=True))

        def lookup_action(name: str) -> List[str]:
            return [
                f"{_I2}// GET: {route}/{name}/5",
                f"{_I2}public async Task<IActionResult> {name}({kt}? id)",
                f"{_I2}{{",
                f"{_I3}if (id == null)",
                f"{_I4}return NotFound();",
                "",
                f"{_I3}var entity = await _repository.GetByIdAsync({id_value});",
                f"{_I3}if (entity == null)",
                f"{_I4}return NotFound();",
                "",
                f"{_I3}return View(entity);",
                f"{_I2}}}",
            ]

        lines: List[str] = [
            "using Microsoft.AspNetCore.Mvc;",
            f"using {self._ns}.Models;",
            f"using {self._ns}.Repositories;",
            "",
            f"namespace {self._ns}.Controllers",
            "{",
            f"{_I1}public class {cls}Controller : Controller",
            f"{_I1}{{",
            f"{_I2}private readonly I{cls}Repository _repository;",
            "",
            f"{_I2}public {cls}Controller(I{cls}Repository repository)",
            f"{_I2}{{",
            f"{_I3}_repository = repository;",
            f"{_I2}}}",
            "",
            f"{_I2}// GET: {route}",
            f"{_I2}public async Task<IActionResult> Index()",
            f"{_I2}{{",
            f"{_I3}var entities = await _repository.GetAllAsync();",
            f"{_I3}return View(entities);",
            f"{_I2}}}",
            "",
        ]
        lines.extend(lookup_action("Details"))
        lines.extend([
            "",
            f"{_I2}// GET: {route}/Create",
            f"{_I2}public IActionResult Create()",
            f"{_I2}{{",
            f"{_I3}return View();",
            f"{_I2}}}",
            "",
            f"{_I2}// POST: {route}/Create",
            f"{_I2}[HttpPost]",
            f"{_I2}[ValidateAntiForgeryToken]",
            f'{_I2}public async Task<IActionResult> Create([Bind("{create_bind}")] {cls} entity)',
            f"{_I2}{{",
            f"{_I3}if (ModelState.IsValid)",
            f"{_I3}{{",
            f"{_I4}await _repository.CreateAsync(entity);",
            f"{_I4}return RedirectToAction(nameof(Index));",
            f"{_I3}}}",
            f"{_I3}return View(entity);",
            f"{_I2}}}",
            "",
        ])
        lines.extend(lookup_action("Edit"))
        lines.extend([
            "",
            f"{_I2}// POST: {route}/Edit/5",
            f"{_I2}[HttpPost]",
            f"{_I2}[ValidateAntiForgeryToken]",
            f'{_I2}public async Task<IActionResult> Edit({kt} id, [Bind("{edit_bind}")] {cls} entity)',
            f"{_I2}{{",
            f"{_I3}if (id != entity.{key})",
            f"{_I4}return NotFound();",
            "",
            f"{_I3}if (ModelState.IsValid)",
            f"{_I3}{{",
            f"{_I4}try",
            f"{_I4}{{",
            f"{_I4}{_I1}await _repository.UpdateAsync(entity);",
            f"{_I4}}}",
            f"{_I4}catch (Exception)",
            f"{_I4}{{",
            f"{_I4}{_I1}if (await _repository.GetByIdAsync(entity.{key}) == null)",
            f"{_I4}{_I2}return NotFound();",
            f"{_I4}{_I1}throw;",
            f"{_I4}}}",
            f"{_I4}return RedirectToAction(nameof(Index));",
            f"{_I3}}}",
            f"{_I3}return View(entity);",
            f"{_I2}}}",
            "",
        ])
        lines.extend(lookup_action("Delete"))
        lines.extend([
            "",
            f"{_I2}// POST: {route}/Delete/5",
            f'{_I2}[HttpPost, ActionName("Delete")]',
            f"{_I2}[ValidateAntiForgeryToken]",
            f"{_I2}public async Task<IActionResult> DeleteConfirmed({kt} id)",
            f"{_I2}{{",
            f"{_I3}await _repository.DeleteAsync(id);",
            f"{_I3}return RedirectToAction(nameof(Index));",
            f"{_I2}}}",
            f"{_I1}}}",
            "}",
            "",
        ])
        return "\n".join(lines)

    # ===================================================================
    # 4. Razor views
    # ===================================================================

    def display_columns(self, table: TableDefinition) -> List[ColumnDefinition]:
        """Columns shown on the Index grid: first N that are not audit columns."""
        candidates: List[ColumnDefinition] = [c for c in table.columns if not c.is_audit]
        return candidates[: self._config.display_column_limit]

    def _definition_entry(self, table: TableDefinition, col: ColumnDefinition, pad: str) -> List[str]:
        prop: str = property_name_for(table, col)
        pair: List[str] = [
            f'<dt class="col-sm-3">@Html.DisplayNameFor(model => model.{prop})</dt>',
            f'<dd class="col-sm-9">@Html.DisplayFor(model => model.{prop})</dd>',
        ]
        if col.nullable and col.is_value_type:
            return (
                [f"{pad}@if (Model.{prop}.HasValue)", f"{pad}{{"]
                + [f"{pad}{_I1}{line}" for line in pair]
                + [f"{pad}}}"]
            )
        return [f"{pad}{line}" for line in pair]

    def _form_field(self, table: TableDefinition, col: ColumnDefinition, pad: str) -> List[str]:
        prop: str = property_name_for(table, col)
        required: str = " required" if not col.nullable else ""
        if col.target_type == CSharpType.BOOL.value:
            return [
                f'{pad}<div class="form-check mb-3">',
                f'{pad}{_I1}<input asp-for="{prop}" class="form-check-input" />',
                f'{pad}{_I1}<label asp-for="{prop}" class="form-check-label"></label>',
                f'{pad}{_I1}<span asp-validation-for="{prop}" class="text-danger"></span>',
                f"{pad}</div>",
            ]
        if col.is_text_blob or (col.is_string and col.is_unbounded):
            control: str = (
                f'<textarea asp-for="{prop}" class="form-control" rows="3"{required}></textarea>'
            )
        else:
            control = f'<input asp-for="{prop}" class="form-control"{required} />'
        return [
            f'{pad}<div class="form-group mb-3">',
            f'{pad}{_I1}<label asp-for="{prop}" class="form-label"></label>',
            f"{pad}{_I1}{control}",
            f'{pad}{_I1}<span asp-validation-for="{prop}" class="text-danger"></span>',
            f"{pad}</div>",
        ]

    @staticmethod
    def _join_blocks(blocks: Sequence[List[str]]) -> List[str]:
        out: List[str] = []
        for index, block in enumerate(blocks):
            if index:
                out.append("")
            out.extend(block)
        return out

    def _card_open(self, title: str, heading: str, model: str, header_class: str = "") -> List[str]:
        card_class: str = "card border-danger" if header_class else "card"
        header: str = f'card-header {header_class}'.strip()
        return [
            f"@model {model}",
            "",
            "@{",
            f'{_I1}ViewData["Title"] = "{title}";',
            "}",
            "",
            '<div class="container mt-4">',
            f'{_I1}<div class="row justify-content-center">',
            f'{_I2}<div class="col-md-8">',
            f'{_I3}<div class="{card_class}">',
            f'{_I4}<div class="{header}">',
            f"{_I4}{_I1}<h4>{heading}</h4>",
            f"{_I4}</div>",
        ]

    @staticmethod
    def _card_close() -> List[str]:
        return [
            f"{_I3}</div>",
            f"{_I2}</div>",
            f"{_I1}</div>",
            "</div>",
        ]

    @staticmethod
    def _scripts_section() -> List[str]:
        return [
            "",
            "@section Scripts {",
            f'{_I1}@{{await Html.RenderPartialAsync("_ValidationScriptsPartial");}}',
            "}",
        ]

    def generate_index_view(self, table: TableDefinition) -> str:
        cls: str = class_name_for(table)
        key: str = _key_property(table)
        title: str = to_plural(cls)
        columns: List[ColumnDefinition] = self.display_columns(table)
        row_pad: str = _I4 + _I4
        lines: List[str] = [
            f"@model IEnumerable<{self._ns}.Models.{cls}>",
            "",
            "@{",
            f'{_I1}ViewData["Title"] = "{title}";',
            "}",
            "",
            '<div class="container mt-4">',
            f'{_I1}<div class="d-flex justify-content-between align-items-center mb-4">',
            f"{_I2}<h2>{title}</h2>",
            f'{_I2}<a asp-controller="{cls}" asp-action="Create" class="btn btn-primary">',
            f'{_I3}<i class="fas fa-plus"></i> Create New {cls}',
            f"{_I2}</a>",
            f"{_I1}</div>",
            "",
            f'{_I1}<div class="card">',
            f'{_I2}<div class="card-body">',
            f'{_I3}<div class="table-responsive">',
            f'{_I4}<table class="table table-striped table-hover">',
            f'{_I4}{_I1}<thead class="table-dark">',
            f"{_I4}{_I2}<tr>",
        ]
        for col in columns:
            prop: str = property_name_for(table, col)
            lines.append(f"{_I4}{_I3}<th>@Html.DisplayNameFor(model => model.{prop})</th>")
        lines.extend([
            f"{_I4}{_I3}<th>Actions</th>",
            f"{_I4}{_I2}</tr>",
            f"{_I4}{_I1}</thead>",
            f"{_I4}{_I1}<tbody>",
            f"{_I4}{_I2}@foreach (var item in Model)",
            f"{_I4}{_I2}{{",
            f"{_I4}{_I3}<tr>",
        ])
        for col in columns:
            prop = property_name_for(table, col)
            lines.append(f"{row_pad}<td>@Html.DisplayFor(modelItem => item.{prop})</td>")
        lines.extend([
            f"{row_pad}<td>",
            f'{row_pad}{_I1}<div class="btn-group" role="group">',
        ])
        for action, style, icon in (
            ("Details", "btn-outline-info", "fa-eye"),
            ("Edit", "btn-outline-warning", "fa-edit"),
            ("Delete", "btn-outline-danger", "fa-trash"),
        ):
            lines.append(
                f'{row_pad}{_I2}<a asp-controller="{cls}" asp-action="{action}" '
                f'asp-route-id="@item.{key}" class="btn btn-sm {style}">'
            )
            lines.append(f'{row_pad}{_I3}<i class="fas {icon}"></i> {action}')
            lines.append(f"{row_pad}{_I2}</a>")
        lines.extend([
            f"{row_pad}{_I1}</div>",
            f"{row_pad}</td>",
            f"{_I4}{_I3}</tr>",
            f"{_I4}{_I2}}}",
            f"{_I4}{_I1}</tbody>",
            f"{_I4}</table>",
            f"{_I3}</div>",
            f"{_I2}</div>",
            f"{_I1}</div>",
            "</div>",
            "",
        ])
        return "\n".join(lines)

    def generate_details_view(self, table: TableDefinition) -> str:
        cls: str = class_name_for(table)
        key: str = _key_property(table)
        pad: str = _I4 + _I2
        lines: List[str] = self._card_open(
            f"{cls} Details", f"{cls} Details", f"{self._ns}.Models.{cls}"
        )
        lines.append(f'{_I4}<div class="card-body">')
        lines.append(f'{_I4}{_I1}<dl class="row">')
        lines.extend(self._join_blocks(
            [self._definition_entry(table, col, pad) for col in table.columns]
        ))
        lines.extend([
            f"{_I4}{_I1}</dl>",
            f"{_I4}</div>",
            f'{_I4}<div class="card-footer">',
            f'{_I4}{_I1}<div class="btn-group">',
            f'{_I4}{_I2}<a asp-controller="{cls}" asp-action="Edit" asp-route-id="@Model.{key}" class="btn btn-warning">',
            f'{_I4}{_I3}<i class="fas fa-edit"></i> Edit',
            f"{_I4}{_I2}</a>",
            f'{_I4}{_I2}<a asp-controller="{cls}" asp-action="Index" class="btn btn-secondary">',
            f'{_I4}{_I3}<i class="fas fa-arrow-left"></i> Back to List',
            f"{_I4}{_I2}</a>",
            f"{_I4}{_I1}</div>",
            f"{_I4}</div>",
        ])
        lines.extend(self._card_close())
        lines.append("")
        return "\n".join(lines)

    def _form_view(self, table: TableDefinition, action: str) -> str:
        cls: str = class_name_for(table)
        editing: bool = action == "Edit"
        pad: str = _I4 + _I2
        title: str = f"{action} {cls}"
        heading: str = f"Edit {cls}" if editing else f"Create New {cls}"

        blocks: List[List[str]] = []
        for col in table.columns:
            if col.is_audit:
                continue
            if col.is_primary_key:
                if editing:
                    blocks.append([f'{pad}<input type="hidden" asp-for="{property_name_for(table, col)}" />'])
                continue
            blocks.append(self._form_field(table, col, pad))

        button: str = (
            '<button type="submit" class="btn btn-warning">' if editing
            else '<button type="submit" class="btn btn-primary">'
        )
        label: str = "Update" if editing else "Create"

        lines: List[str] = self._card_open(title, heading, f"{self._ns}.Models.{cls}")
        lines.extend([
            f'{_I4}<div class="card-body">',
            f'{_I4}{_I1}<form asp-controller="{cls}" asp-action="{action}">',
            f'{pad}<div asp-validation-summary="ModelOnly" class="text-danger mb-3"></div>',
            "",
        ])
        lines.extend(self._join_blocks(blocks))
        lines.extend([
            "",
            f'{pad}<div class="form-group">',
            f"{pad}{_I1}{button}",
            f'{pad}{_I2}<i class="fas fa-save"></i> {label}',
            f"{pad}{_I1}</button>",
            f'{pad}{_I1}<a asp-controller="{cls}" asp-action="Index" class="btn btn-secondary">',
            f'{pad}{_I2}<i class="fas fa-times"></i> Cancel',
            f"{pad}{_I1}</a>",
            f"{pad}</div>",
            f"{_I4}{_I1}</form>",
            f"{_I4}</div>",
        ])
        lines.extend(self._card_close())
        lines.extend(self._scripts_section())
        lines.append("")
        return "\n".join(lines)

    def generate_create_view(self, table: TableDefinition) -> str:
        return self._form_view(table, "Create")

    def generate_edit_view(self, table: TableDefinition) -> str:
        return self._form_view(table, "Edit")

    def generate_delete_view(self, table: TableDefinition) -> str:
        cls: str = class_name_for(table)
        key: str = _key_property(table)
        pad: str = _I4 + _I2
        lines: List[str] = self._card_open(
            f"Delete {cls}",
            f"Delete {cls}",
            f"{self._ns}.Models.{cls}",
            header_class="bg-danger text-white",
        )
        lines.extend([
            f'{_I4}<div class="card-body">',
            f'{_I4}{_I1}<div class="alert alert-warning">',
            f'{_I4}{_I2}<i class="fas fa-exclamation-triangle"></i>',
            f"{_I4}{_I2}Are you sure you want to delete this {cls}?",
            f"{_I4}{_I1}</div>",
            "",
            f'{_I4}{_I1}<dl class="row">',
        ])
        lines.extend(self._join_blocks(
            [
                self._definition_entry(table, col, pad)
                for col in table.columns
                if not col.is_audit_updated
            ]
        ))
        lines.extend([
            f"{_I4}{_I1}</dl>",
            "",
            f'{_I4}{_I1}<form asp-controller="{cls}" asp-action="Delete">',
            f'{pad}<input type="hidden" asp-for="{key}" />',
            f'{pad}<div class="form-group">',
            f'{pad}{_I1}<button type="submit" class="btn btn-danger">',
            f'{pad}{_I2}<i class="fas fa-trash"></i> Delete',
            f"{pad}{_I1}</button>",
            f'{pad}{_I1}<a asp-controller="{cls}" asp-action="Index" class="btn btn-secondary">',
            f'{pad}{_I2}<i class="fas fa-arrow-left"></i> Back to List',
            f"{pad}{_I1}</a>",
            f"{pad}</div>",
            f"{_I4}{_I1}</form>",
            f"{_I4}</div>",
        ])
        lines.extend(self._card_close())
        lines.append("")
        return "\n".join(lines)

    # ===================================================================
    # 5. Service
    # ===================================================================

    def generate_service(self, table: TableDefinition) -> str:
        """Service layer wrapping the repository with structured logging."""
        cls: str = class_name_for(table)
        kt: str = table.key_type
        key: str = _key_property(table)
        plural: str = to_plural(cls)
        lines: List[str] = [
            f"using {self._ns}.Models;",
            f"using {self._ns}.Repositories;",
            "",
            f"namespace {self._ns}.Services",
            "{",
            f"{_I1}public interface I{cls}Service",
            f"{_I1}{{",
            f"{_I2}Task<IEnumerable<{cls}>> GetAllAsync();",
            f"{_I2}Task<{cls}?> GetByIdAsync({kt} id);",
            f"{_I2}Task<{cls}> CreateAsync({cls} entity);",
            f"{_I2}Task<{cls}> UpdateAsync({cls} entity);",
            f"{_I2}Task DeleteAsync({kt} id);",
            f"{_I1}}}",
            "",
            f"{_I1}public class {cls}Service : I{cls}Service",
            f"{_I1}{{",
            f"{_I2}private readonly I{cls}Repository _repository;",
            f"{_I2}private readonly ILogger<{cls}Service> _logger;",
            "",
            f"{_I2}public {cls}Service(I{cls}Repository repository, ILogger<{cls}Service> logger)",
            f"{_I2}{{",
            f"{_I3}_repository = repository;",
            f"{_I3}_logger = logger;",
            f"{_I2}}}",
            "",
            f"{_I2}public async Task<IEnumerable<{cls}>> GetAllAsync()",
            f"{_I2}{{",
            f'{_I3}_logger.LogInformation("Getting all {plural}");',
            f"{_I3}return await _repository.GetAllAsync();",
            f"{_I2}}}",
            "",
            f"{_I2}public async Task<{cls}?> GetByIdAsync({kt} id)",
            f"{_I2}{{",
            f'{_I3}_logger.LogInformation("Getting {cls} with ID: {{Id}}", id);',
            f"{_I3}return await _repository.GetByIdAsync(id);",
            f"{_I2}}}",
            "",
            f"{_I2}public async Task<{cls}> CreateAsync({cls} entity)",
            f"{_I2}{{",
            f'{_I3}_logger.LogInformation("Creating new {cls}");',
            f"{_I3}return await _repository.CreateAsync(entity);",
            f"{_I2}}}",
            "",
            f"{_I2}public async Task<{cls}> UpdateAsync({cls} entity)",
            f"{_I2}{{",
            f'{_I3}_logger.LogInformation("Updating {cls} with ID: {{Id}}", entity.{key});',
            f"{_I3}return await _repository.UpdateAsync(entity);",
            f"{_I2}}}",
            "",
            f"{_I2}public async Task DeleteAsync({kt} id)",
            f"{_I2}{{",
            f'{_I3}_logger.LogInformation("Deleting {cls} with ID: {{Id}}", id);',
            f"{_I3}await _repository.DeleteAsync(id);",
            f"{_I2}}}",
            f"{_I1}}}",
            "}",
            "",
        ]
        return "\n".join(lines)

    # ===================================================================
    # 6. Shared scaffolding
    # ===================================================================

    def generate_solution(self) -> str:
        """Visual Studio solution with a project GUID derived from the project name."""
        ns: str = self._ns
        guid: str = deterministic_guid("project", ns)
        lines: List[str] = [
            "Microsoft Visual Studio Solution File, Format Version 12.00",
            "# Visual Studio Version 17",
            "VisualStudioVersion = 17.0.31903.59",
            "MinimumVisualStudioVersion = 10.0.40219.1",
            f'Project("{{{_CSHARP_PROJECT_TYPE_GUID}}}") = "{ns}", "{ns}\\{ns}.csproj", "{{{guid}}}"',
            "EndProject",
            "Global",
            "\tGlobalSection(SolutionConfigurationPlatforms) = preSolution",
            "\t\tDebug|Any CPU = Debug|Any CPU",
            "\t\tRelease|Any CPU = Release|Any CPU",
            "\tEndGlobalSection",
            "\tGlobalSection(ProjectConfigurationPlatforms) = postSolution",
            f"\t\t{{{guid}}}.Debug|Any CPU.ActiveCfg = Debug|Any CPU",
            f"\t\t{{{guid}}}.Debug|Any CPU.Build.0 = Debug|Any CPU",
            f"\t\t{{{guid}}}.Release|Any CPU.ActiveCfg = Release|Any CPU",
            f"\t\t{{{guid}}}.Release|Any CPU.Build.0 = Release|Any CPU",
            "\tEndGlobalSection",
            "EndGlobal",
            "",
        ]
        return "\n".join(lines)

    def generate_project_file(self) -> str:
        cfg: GenerationConfig = self._config
        packages: List[tuple] = [
            ("Microsoft.EntityFrameworkCore.SqlServer", cfg.ef_core_version),
            ("Microsoft.EntityFrameworkCore.Tools", cfg.ef_core_version),
        ]
        if cfg.include_jwt_auth:
            packages.append(("Microsoft.AspNetCore.Authentication.JwtBearer", cfg.ef_core_version))
        if cfg.include_google_auth:
            packages.append(("Microsoft.AspNetCore.Authentication.Google", cfg.ef_core_version))
        if cfg.include_swagger:
            packages.append(("Swashbuckle.AspNetCore", cfg.swashbuckle_version))

        lines: List[str] = [
            '<Project Sdk="Microsoft.NET.Sdk.Web">',
            "  <PropertyGroup>",
            f"    <TargetFramework>{cfg.target_framework}</TargetFramework>",
            "    <Nullable>enable</Nullable>",
            "    <ImplicitUsings>enable</ImplicitUsings>",
            f"    <RootNamespace>{self._ns}</RootNamespace>",
            "  </PropertyGroup>",
            "  <ItemGroup>",
        ]
        lines.extend(
            f'    <PackageReference Include="{name}" Version="{version}" />'
            for name, version in packages
        )
        lines.extend(["  </ItemGroup>", "</Project>", ""])
        return "\n".join(lines)

    def generate_program(self, tables: Sequence[TableDefinition]) -> str:
        """``Program.cs`` with one repository and one service registration per table."""
        cfg: GenerationConfig = self._config
        lines: List[str] = ["using Microsoft.EntityFrameworkCore;"]
        if cfg.include_jwt_auth:
            lines.extend([
                "using Microsoft.AspNetCore.Authentication.JwtBearer;",
                "using Microsoft.IdentityModel.Tokens;",
                "using System.Text;",
            ])
        lines.extend([
            f"using {self._ns}.Models;",
            f"using {self._ns}.Repositories;",
            f"using {self._ns}.Services;",
            "",
            "var builder = WebApplication.CreateBuilder(args);",
            "",
            "// Add services to the container.",
            'var connectionString = builder.Configuration.GetConnectionString("DefaultConnection")',
            "    ?? throw new InvalidOperationException(\"Connection string 'DefaultConnection' not found.\");",
            'if (!connectionString.Contains("TrustServerCertificate", StringComparison.OrdinalIgnoreCase))',
            "{",
            '    connectionString += ";TrustServerCertificate=true";',
            "}",
            "builder.Services.AddDbContext<ApplicationDbContext>(options =>",
            "    options.UseSqlServer(connectionString));",
            "",
            "// Register repositories",
        ])
        for table in tables:
            cls: str = class_name_for(table)
            lines.append(f"builder.Services.AddScoped<I{cls}Repository, {cls}Repository>();")
        lines.extend(["", "// Register services"])
        for table in tables:
            cls = class_name_for(table)
            lines.append(f"builder.Services.AddScoped<I{cls}Service, {cls}Service>();")
        lines.extend([
            "",
            "// Add MVC services",
            "builder.Services.AddControllersWithViews();",
        ])
        if cfg.include_jwt_auth:
            lines.extend([
                "",
                "// Add JWT authentication",
                "builder.Services.AddAuthentication(JwtBearerDefaults.AuthenticationScheme)",
                "    .AddJwtBearer(options =>",
                "    {",
                "        options.TokenValidationParameters = new TokenValidationParameters",
                "        {",
                "            ValidateIssuer = true,",
                "            ValidateAudience = true,",
                "            ValidateLifetime = true,",
                "            ValidateIssuerSigningKey = true,",
                '            ValidIssuer = builder.Configuration["Jwt:Issuer"],',
                '            ValidAudience = builder.Configuration["Jwt:Audience"],',
                "            IssuerSigningKey = new SymmetricSecurityKey(",
                '                Encoding.UTF8.GetBytes(builder.Configuration["Jwt:Key"] ?? "default-key"))',
                "        };",
                "    });",
            ])
        lines.extend([
            "",
            "// Add API controllers",
            "builder.Services.AddControllers();",
        ])
        if cfg.include_swagger:
            lines.extend([
                "builder.Services.AddEndpointsApiExplorer();",
                "builder.Services.AddSwaggerGen();",
            ])
        lines.extend([
            "",
            "var app = builder.Build();",
            "",
            "// Ensure database is created",
            "using (var scope = app.Services.CreateScope())",
            "{",
            "    var context = scope.ServiceProvider.GetRequiredService<ApplicationDbContext>();",
            "    context.Database.EnsureCreated();",
            "}",
            "",
            "// Configure the HTTP request pipeline.",
            "if (app.Environment.IsDevelopment())",
            "{",
            "    app.UseDeveloperExceptionPage();",
        ])
        if cfg.include_swagger:
            lines.extend(["    app.UseSwagger();", "    app.UseSwaggerUI();"])
        lines.extend([
            "}",
            "else",
            "{",
            '    app.UseExceptionHandler("/Home/Error");',
            "    app.UseHsts();",
            "}",
            "",
            "app.UseHttpsRedirection();",
            "app.UseStaticFiles();",
            "",
            "app.UseRouting();",
            "",
        ])
        if cfg.include_jwt_auth:
            lines.append("app.UseAuthentication();")
        lines.extend([
            "app.UseAuthorization();",
            "",
            "// Configure MVC routing",
            "app.MapControllerRoute(",
            '    name: "default",',
            '    pattern: "{controller=Home}/{action=Index}/{id?}");',
            "",
            "// Configure API routing",
            "app.MapControllers();",
            "",
            "app.Run();",
            "",
        ])
        return "\n".join(lines)

    def generate_db_context(self, tables: Sequence[TableDefinition]) -> str:
        """``ApplicationDbContext`` with one ``DbSet`` per table, in selection order."""
        lines: List[str] = [
            "using Microsoft.EntityFrameworkCore;",
            "",
            f"namespace {self._ns}.Models",
            "{",
            f"{_I1}public class ApplicationDbContext : DbContext",
            f"{_I1}{{",
            f"{_I2}public ApplicationDbContext(DbContextOptions<ApplicationDbContext> options) : base(options) {{ }}",
            "",
        ]
        for table in tables:
            cls: str = class_name_for(table)
            lines.append(f"{_I2}public DbSet<{cls}> {cls} {{ get; set; }}")
        lines.extend([
            "",
            f"{_I2}protected override void OnModelCreating(ModelBuilder modelBuilder)",
            f"{_I2}{{",
            f"{_I3}base.OnModelCreating(modelBuilder);",
        ])
        for table in tables:
            cls = class_name_for(table)
            lines.extend([
                "",
                f"{_I3}modelBuilder.Entity<{cls}>(entity =>",
                f"{_I3}{{",
                f'{_I4}entity.ToTable("{table.name}");',
            ])
            created: Optional[ColumnDefinition] = table.created_audit_column
            if created is not None:
                lines.append(
                    f"{_I4}entity.Property(e => e.{property_name_for(table, created)})"
                    '.HasDefaultValueSql("GETUTCDATE()");'
                )
            lines.append(f"{_I3}}});")
        lines.extend([
            f"{_I2}}}",
            f"{_I1}}}",
            "}",
            "",
        ])
        return "\n".join(lines)

    def generate_appsettings(self) -> str:
        cfg: GenerationConfig = self._config
        settings: Dict[str, object] = {
            "ConnectionStrings": {"DefaultConnection": cfg.default_connection_string},
        }
        if cfg.include_jwt_auth:
            settings["Jwt"] = {
                "Key": "your-secret-key-here-make-it-at-least-32-characters-long",
                "Issuer": self._ns,
                "Audience": self._ns,
            }
        if cfg.include_google_auth:
            settings["Authentication"] = {
                "Google": {
                    "ClientId": "your-google-client-id",
                    "ClientSecret": "your-google-client-secret",
                }
            }
        settings["Logging"] = {
            "LogLevel": {"Default": "Information", "Microsoft.AspNetCore": "Warning"}
        }
        settings["AllowedHosts"] = "*"
        return json.dumps(settings, indent=2) + "\n"

    def generate_appsettings_development(self) -> str:
        settings: Dict[str, object] = {
            "DetailedErrors": True,
            "Logging": {
                "LogLevel": {"Default": "Information", "Microsoft.AspNetCore": "Warning"}
            },
        }
        return json.dumps(settings, indent=2) + "\n"

    def generate_home_controller(self) -> str:
        lines: List[str] = [
            "using System.Diagnostics;",
            "using Microsoft.AspNetCore.Mvc;",
            "",
            f"namespace {self._ns}.Controllers",
            "{",
            f"{_I1}public class HomeController : Controller",
            f"{_I1}{{",
            f"{_I2}private readonly ILogger<HomeController> _logger;",
            "",
            f"{_I2}public HomeController(ILogger<HomeController> logger)",
            f"{_I2}{{",
            f"{_I3}_logger = logger;",
            f"{_I2}}}",
            "",
            f"{_I2}public IActionResult Index()",
            f"{_I2}{{",
            f"{_I3}return View();",
            f"{_I2}}}",
            "",
            f"{_I2}public IActionResult Privacy()",
            f"{_I2}{{",
            f"{_I3}return View();",
            f"{_I2}}}",
            "",
            f"{_I2}[ResponseCache(Duration = 0, Location = ResponseCacheLocation.None, NoStore = true)]",
            f"{_I2}public IActionResult Error()",
            f"{_I2}{{",
            f"{_I3}return View(new ErrorViewModel {{ RequestId = Activity.Current?.Id ?? HttpContext.TraceIdentifier }});",
            f"{_I2}}}",
            f"{_I1}}}",
            "",
            f"{_I1}public class ErrorViewModel",
            f"{_I1}{{",
            f"{_I2}public string? RequestId {{ get; set; }}",
            f"{_I2}public bool ShowRequestId => !string.IsNullOrEmpty(RequestId);",
            f"{_I1}}}",
            "}",
            "",
        ]
        return "\n".join(lines)

    def generate_view_start(self) -> str:
        return "@{\n    Layout = \"_Layout\";\n}\n"

    def generate_view_imports(self) -> str:
        return "\n".join([
            f"@using {self._ns}",
            f"@using {self._ns}.Models",
            f"@using {self._ns}.Controllers",
            "@addTagHelper *, Microsoft.AspNetCore.Mvc.TagHelpers",
            "",
        ])

    def generate_home_index(self, tables: Sequence[TableDefinition]) -> str:
        """Landing page with one card per table."""
        lines: List[str] = [
            "@{",
            '    ViewData["Title"] = "Home Page";',
            "}",
            "",
            '<div class="text-center">',
            f'{_I1}<h1 class="display-4">Welcome to {self._ns}</h1>',
            f'{_I1}<p>Learn about <a href="https://learn.microsoft.com/aspnet/core">building Web apps with ASP.NET Core</a>.</p>',
            "",
            f'{_I1}<div class="row mt-5">',
        ]
        for table in tables:
            cls: str = class_name_for(table)
            lines.extend([
                f'{_I2}<div class="col-md-4 mb-3">',
                f'{_I3}<div class="card">',
                f'{_I4}<div class="card-body">',
                f'{_I4}{_I1}<h5 class="card-title">{cls} Management</h5>',
                f'{_I4}{_I1}<p class="card-text">Manage {cls} records with full CRUD operations.</p>',
                f'{_I4}{_I1}<a asp-controller="{cls}" asp-action="Index" class="btn btn-primary">View {to_plural(cls)}</a>',
                f"{_I4}</div>",
                f"{_I3}</div>",
                f"{_I2}</div>",
            ])
        lines.extend([f"{_I1}</div>", "</div>", ""])
        return "\n".join(lines)

    def generate_privacy_view(self) -> str:
        return "\n".join([
            "@{",
            '    ViewData["Title"] = "Privacy Policy";',
            "}",
            '<h1>@ViewData["Title"]</h1>',
            "",
            "<p>Use this page to detail your site's privacy policy.</p>",
            "",
        ])

    def generate_error_view(self) -> str:
        return "\n".join([
            f"@model {self._ns}.Controllers.ErrorViewModel",
            "@{",
            '    ViewData["Title"] = "Error";',
            "}",
            "",
            '<h1 class="text-danger">Error.</h1>',
            '<h2 class="text-danger">An error occurred while processing your request.</h2>',
            "",
            "@if (Model.ShowRequestId)",
            "{",
            "    <p>",
            "        <strong>Request ID:</strong> <code>@Model.RequestId</code>",
            "    </p>",
            "}",
            "",
        ])

    def generate_layout(self, tables: Sequence[TableDefinition]) -> str:
        """Shared layout; the navbar lists every selected table once."""
        ns: str = self._ns
        lines: List[str] = [
            "<!DOCTYPE html>",
            '<html lang="en">',
            "<head>",
            '    <meta charset="utf-8" />',
            '    <meta name="viewport" content="width=device-width, initial-scale=1.0" />',
            f'    <title>@ViewData["Title"] - {ns}</title>',
            '    <link rel="stylesheet" href="https://cdn.jsdelivr.net/npm/bootstrap@5.3.2/dist/css/bootstrap.min.css" />',
            '    <link rel="stylesheet" href="https://cdnjs.cloudflare.com/ajax/libs/font-awesome/6.0.0/css/all.min.css" />',
            '    <link rel="stylesheet" href="~/css/site.css" asp-append-version="true" />',
            "</head>",
            "<body>",
            "    <header>",
            '        <nav class="navbar navbar-expand-sm navbar-toggleable-sm navbar-dark bg-primary border-bottom box-shadow mb-3">',
            '            <div class="container-fluid">',
            f'                <a class="navbar-brand" asp-area="" asp-controller="Home" asp-action="Index">{ns}</a>',
            '                <button class="navbar-toggler" type="button" data-bs-toggle="collapse" data-bs-target=".navbar-collapse"',
            '                        aria-controls="navbarSupportedContent" aria-expanded="false" aria-label="Toggle navigation">',
            '                    <span class="navbar-toggler-icon"></span>',
            "                </button>",
            '                <div class="navbar-collapse collapse d-sm-inline-flex justify-content-between">',
            '                    <ul class="navbar-nav flex-grow-1">',
            '                        <li class="nav-item">',
            '                            <a class="nav-link" asp-area="" asp-controller="Home" asp-action="Index">Home</a>',
            "                        </li>",
        ]
        for table in tables:
            cls: str = class_name_for(table)
            lines.extend([
                '                        <li class="nav-item">',
                f'                            <a class="nav-link" asp-controller="{cls}" asp-action="Index">{to_plural(cls)}</a>',
                "                        </li>",
            ])
        lines.extend([
            "                    </ul>",
            "                </div>",
            "            </div>",
            "        </nav>",
            "    </header>",
            '    <div class="container">',
            '        <main role="main" class="pb-3">',
            "            @RenderBody()",
            "        </main>",
            "    </div>",
            "",
            '    <footer class="border-top footer text-muted">',
            '        <div class="container">',
            f"            &copy; {ns} - Generated by GenNetta",
            "        </div>",
            "    </footer>",
            '    <script src="https://cdn.jsdelivr.net/npm/jquery@3.7.1/dist/jquery.min.js"></script>',
            '    <script src="https://cdn.jsdelivr.net/npm/bootstrap@5.3.2/dist/js/bootstrap.bundle.min.js"></script>',
            '    <script src="~/js/site.js" asp-append-version="true"></script>',
            '    @await RenderSectionAsync("Scripts", required: false)',
            "</body>",
            "</html>",
            "",
        ])
        return "\n".join(lines)

    def generate_validation_scripts_partial(self) -> str:
        return "\n".join([
            '<script src="https://cdn.jsdelivr.net/npm/jquery-validation@1.19.5/dist/jquery.validate.min.js"></script>',
            '<script src="https://cdn.jsdelivr.net/npm/jquery-validation-unobtrusive@4.0.0/dist/jquery.validate.unobtrusive.min.js"></script>',
            "",
        ])

    def generate_site_css(self) -> str:
        return "\n".join([
            "a.navbar-brand {",
            "  white-space: normal;",
            "  text-align: center;",
            "  word-break: break-all;",
            "}",
            "",
            "a {",
            "  color: #0077cc;",
            "}",
            "",
            ".btn-primary {",
            "  color: #fff;",
            "  background-color: #1b6ec2;",
            "  border-color: #1861ac;",
            "}",
            "",
            ".border-top {",
            "  border-top: 1px solid #e5e5e5;",
            "}",
            "",
            ".border-bottom {",
            "  border-bottom: 1px solid #e5e5e5;",
            "}",
            "",
            ".box-shadow {",
            "  box-shadow: 0 .25rem .75rem rgba(0, 0, 0, .05);",
            "}",
            "",
            ".footer {",
            "  position: absolute;",
            "  bottom: 0;",
            "  width: 100%;",
            "  white-space: nowrap;",
            "  line-height: 60px;",
            "}",
            "",
        ])

    def generate_site_js(self) -> str:
        return "\n".join([
            "// Please see documentation at https://learn.microsoft.com/aspnet/core/client-side/bundling-and-minification",
            "// for details on configuring this project to bundle and minify static web assets.",
            "",
            "// Write your JavaScript code.",
            "",
        ])

    def generate_readme(self, tables: Sequence[TableDefinition]) -> str:
        """Project README listing the generated tables and their endpoints."""
        ns: str = self._ns
        cfg: GenerationConfig = self._config
        lines: List[str] = [
            f"# {ns}",
            "",
            "ASP.NET Core MVC + Web API application generated by GenNetta.",
            "",
            "## Features",
            "- Entity Framework Core with the repository pattern",
            "- MVC controllers with Razor views and REST API controllers",
            "- Service layer with structured logging",
            "- SQL Server support",
        ]
        if cfg.include_jwt_auth:
            lines.append("- JWT bearer authentication")
        if cfg.include_google_auth:
            lines.append("- Google OAuth settings")
        if cfg.include_swagger:
            lines.append("- Swagger / OpenAPI documentation")
        lines.extend(["", "## Generated Tables"])
        lines.extend(f"- {table.name}" for table in tables)
        lines.extend([
            "",
            "## Quick Start",
            "",
            f"1. Update `DefaultConnection` in `{ns}/appsettings.json`.",
            "2. Install the EF Core CLI: `dotnet tool install --global dotnet-ef`.",
            f"3. Create the database: `cd {ns} && dotnet ef migrations add InitialCreate && dotnet ef database update`.",
            "4. Run: `dotnet run`.",
            "",
            "## Project Structure",
            "```",
            f"{ns}/",
            "├── Controllers/     # API and MVC controllers",
            "├── Models/          # Entity Framework models and DbContext",
            "├── Repositories/    # Repository pattern implementations",
            "├── Services/        # Business logic services",
            "├── Views/           # Razor views",
            "├── wwwroot/         # Static files",
            "├── appsettings.json",
            "└── Program.cs",
            "```",
            "",
            "## API Endpoints",
        ])
        for table in tables:
            cls: str = class_name_for(table)
            route: str = _route_segment(table)
            lines.extend([
                "",
                f"### {cls}",
                f"- `GET /api/{route}` - list all {to_plural(cls)}",
                f"- `GET /api/{route}/{{id}}` - get one {cls}",
                f"- `POST /api/{route}` - create a {cls}",
                f"- `PUT /api/{route}/{{id}}` - update a {cls}",
                f"- `DELETE /api/{route}/{{id}}` - delete a {cls}",
            ])
        lines.extend(["", "## Web Interface"])
        lines.extend(
            f"- **{class_name_for(t)} Management**: `/{class_name_for(t)}`" for t in tables
        )
        lines.extend(["", "---", "**Generated by GenNetta**", ""])
        return "\n".join(lines)

    # ===================================================================
    # 7. Aggregate generation
    # ===================================================================

    def resolve_tables(
        self,
        snapshot: SchemaSnapshot,
        selected: Optional[Sequence[str]] = None,
    ) -> List[TableDefinition]:
        """
        Look up every selected name in *snapshot*, in selection order.

        ``None`` selects every table.  Repeated names are kept once.

        Raises:
            TableLookupError: A name has no definition in the snapshot.
        """
        if selected is None:
            return list(snapshot.tables)

        tables: List[TableDefinition] = []
        seen: set = set()
        for name in selected:
            if name in seen:
                logger.debug("Table '%s' selected more than once; generating it once.", name)
                continue
            table: Optional[TableDefinition] = snapshot.get_table(name)
            if table is None:
                logger.error(
                    "Table '%s' not found in schema. Available tables: %s",
                    name,
                    ", ".join(snapshot.table_names),
                )
                raise TableLookupError(name, snapshot.table_names)
            seen.add(name)
            tables.append(table)
        return tables

    def generate_all_for_table(self, table: TableDefinition) -> Dict[str, str]:
        """All per-table artifacts for *table*, keyed by relative path."""
        cls: str = class_name_for(table)
        renderers: Dict[str, str] = {
            "model": self.generate_entity_model(table),
            "repository": self.generate_repository(table),
            "api_controller": self.generate_api_controller(table),
            "mvc_controller": self.generate_mvc_controller(table),
            "index_view": self.generate_index_view(table),
            "details_view": self.generate_details_view(table),
            "create_view": self.generate_create_view(table),
            "edit_view": self.generate_edit_view(table),
            "delete_view": self.generate_delete_view(table),
            "service": self.generate_service(table),
        }
        result: Dict[str, str] = {
            self.project_path(PER_TABLE_ARTIFACTS[kind].format(cls=cls)): content
            for kind, content in renderers.items()
        }
        logger.debug("Generated all files for table '%s': %d files.", table.name, len(result))
        return result

    def generate_shared(self, tables: Sequence[TableDefinition]) -> Dict[str, str]:
        """Scaffolding that depends on the whole selection."""
        ns: str = self._ns
        return {
            f"{ns}.sln": self.generate_solution(),
            self.project_path(f"{ns}.csproj"): self.generate_project_file(),
            self.project_path("Program.cs"): self.generate_program(tables),
            self.project_path("Models/ApplicationDbContext.cs"): self.generate_db_context(tables),
            self.project_path("appsettings.json"): self.generate_appsettings(),
            self.project_path("appsettings.Development.json"): self.generate_appsettings_development(),
            self.project_path("Controllers/HomeController.cs"): self.generate_home_controller(),
            self.project_path("Views/_ViewStart.cshtml"): self.generate_view_start(),
            self.project_path("Views/_ViewImports.cshtml"): self.generate_view_imports(),
            self.project_path("Views/Home/Index.cshtml"): self.generate_home_index(tables),
            self.project_path("Views/Home/Privacy.cshtml"): self.generate_privacy_view(),
            self.project_path("Views/Shared/_Layout.cshtml"): self.generate_layout(tables),
            self.project_path("Views/Shared/_ValidationScriptsPartial.cshtml"): (
                self.generate_validation_scripts_partial()
            ),
            self.project_path("Views/Shared/Error.cshtml"): self.generate_error_view(),
            self.project_path("wwwroot/css/site.css"): self.generate_site_css(),
            self.project_path("wwwroot/js/site.js"): self.generate_site_js(),
            "README.md": self.generate_readme(tables),
        }

    def generate_all(
        self,
        snapshot: SchemaSnapshot,
        selected: Optional[Sequence[str]] = None,
    ) -> Dict[str, str]:
        """
        Generate the complete project for the selected tables.

        Returns an ordered dict of relative path → content: shared
        scaffolding first, then each table's artifacts in selection order.

        Raises:
            TableLookupError: A selected table is missing from *snapshot*.
        """
        tables: List[TableDefinition] = self.resolve_tables(snapshot, selected)

        result: Dict[str, str] = self.generate_shared(tables)
        for table in tables:
            result.update(self.generate_all_for_table(table))

        total_lines: int = sum(content.count("\n") for content in result.values())
        logger.info(
            "Full generation complete: %d tables, %d files, ~%d lines.",
            len(tables),
            len(result),
            total_lines,
        )
        return result

    def generate(
        self,
        snapshot: SchemaSnapshot,
        selected: Optional[Sequence[str]] = None,
    ) -> GenerationResult:
        """Same as ``generate_all`` but wrapped in a ``GenerationResult``."""
        files: Dict[str, str] = self.generate_all(snapshot, selected)
        tables: List[TableDefinition] = self.resolve_tables(snapshot, selected)
        return GenerationResult(
            project_name=self._ns,
            tables=[t.name for t in tables],
            files=[GeneratedFile(path=path, content=content) for path, content in files.items()],
        )


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "PER_TABLE_ARTIFACTS",
    "TemplateGenerator",
    "class_name_for",
    "property_name_for",
]

logger.debug("gennetta.templates loaded — %d public symbols.", len(__all__))
