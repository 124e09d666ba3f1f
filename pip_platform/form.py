"""Form composition over PIP object types.

A form is an object type whose latest object holds the JSON schema and UI
hints. Its children supply translations (slug containing ``i18n``) and the
user's submitted data (slug containing ``data``).
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from contracts.v1.schemas import FormData, FormResponse, FormSchema, ObjectType, PIPObject

from .errors import FormSubmissionError
from .ports import PrivateInformationProvider

logger = logging.getLogger(__name__)

I18N_MARKER = "i18n"
DATA_MARKER = "data"


def _find_child(children: list[ObjectType], marker: str) -> ObjectType | None:
    return next((child for child in children if marker in child.slug), None)


def schema_from_payload(payload: dict[str, Any]) -> FormSchema:
    """Accept both the ``uiSchema`` and the older ``ui`` key for UI hints."""
    if "uiSchema" in payload:
        ui_schema = payload["uiSchema"]
    else:
        ui_schema = payload.get("ui") or {}
    return FormSchema(
        title=payload.get("page-title"),
        json_schema=payload.get("schema") or {},
        ui_schema=ui_schema or {},
    )


def data_from_payload(payload: Any) -> FormData:
    """Split submitted data from any metadata stored alongside it.

    Newer submissions nest the form values under ``data``; older ones stored
    the values directly.
    """
    if isinstance(payload, dict) and "data" in payload:
        extra = {key: value for key, value in payload.items() if key != "data"}
        return FormData(data=payload["data"], extra_data=extra)
    return FormData(data=payload if payload is not None else {}, extra_data={})


class PIPForm:
    """Renderable form assembled from a form type and its children."""

    def __init__(self, form_id: str, pip: PrivateInformationProvider, jwt: str):
        self.form_id = form_id
        self.pip = pip
        self.jwt = jwt

    async def form(self) -> FormResponse:
        form_type = await self.pip.get_object_type(self.form_id, self.jwt)
        children = await asyncio.gather(
            *(self.pip.get_object_type(key, self.jwt) for key in form_type.children)
        )

        schema, translations, data = await asyncio.gather(
            self.get_form_schema(form_type),
            self.get_form_translations(list(children)),
            self.get_form_data(list(children)),
        )
        return FormResponse(
            title=schema.title,
            json_schema=schema.json_schema,
            ui_schema=schema.ui_schema,
            data=data.data,
            extra_data=data.extra_data,
            translations=translations,
        )

    async def submit(self, form_data: Any, extra_data: dict[str, Any] | None = None) -> PIPObject:
        form_type = await self.pip.get_object_type(self.form_id, self.jwt)
        data_type_key = next((key for key in form_type.children if DATA_MARKER in key), None)
        if data_type_key is None:
            raise FormSubmissionError(
                f"Unable to submit form data, unable to locate the data object for form_id: {self.form_id}"
            )
        data_type = await self.pip.get_object_type(data_type_key, self.jwt)
        payload = {**(extra_data or {}), "data": form_data}
        return await self.pip.update_object(data_type, payload, self.jwt)

    async def get_form_schema(self, form_type: ObjectType) -> FormSchema:
        latest = await self.pip.get_latest_object_for_type(form_type, self.jwt)
        return schema_from_payload(latest.data or {})

    async def get_form_translations(self, children: list[ObjectType]) -> dict[str, Any]:
        child = _find_child(children, I18N_MARKER)
        if child is None:
            logger.debug("Form %s has no translations type", self.form_id)
            return {}
        latest = await self.pip.get_latest_object_for_type(child, self.jwt)
        return latest.data or {}

    async def get_form_data(self, children: list[ObjectType]) -> FormData:
        child = _find_child(children, DATA_MARKER)
        if child is None:
            logger.debug("Form %s has no data type", self.form_id)
            return FormData()
        latest = await self.pip.get_latest_object_for_type(child, self.jwt)
        return data_from_payload(latest.data or {})
