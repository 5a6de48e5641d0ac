"""HTTP endpoints for listing, describing and submitting forms."""

from typing import Annotated, Any

from litestar import Controller, Request, get, post
from litestar.exceptions import SerializationException, ValidationException
from litestar.params import Dependency, Parameter
from litestar.response import Response
from litestar.status_codes import HTTP_200_OK, HTTP_422_UNPROCESSABLE_ENTITY

from formwire.exceptions import NotFound, form_not_found_handler
from formwire.processor import SubmissionProcessor
from formwire.registry import FormRegistry

FORM_MEDIA_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

FormName = Annotated[str, Parameter(description="Registered form name")]
Registry = Annotated[FormRegistry, Dependency(skip_validation=True)]
Processor = Annotated[SubmissionProcessor, Dependency(skip_validation=True)]


async def read_submission(request: Request) -> dict[str, Any]:
    """Read submission data from a JSON or form-encoded body."""
    media_type, _ = request.content_type
    if media_type in FORM_MEDIA_TYPES:
        form_data = await request.form()
        return {
            key: values[0] if len(values) == 1 else values
            for key, values in form_data.dict().items()
        }

    if not await request.body():
        return {}
    try:
        data = await request.json()
    except SerializationException as exc:
        raise ValidationException("Submission body is not valid JSON") from exc
    if not isinstance(data, dict):
        raise ValidationException("Submission body must be a JSON object")
    return data


class FormController(Controller):
    """Serves form descriptors to the frontend and accepts submissions.

    Expects ``form_registry`` and ``submission_processor`` dependencies,
    see formwire.app_factory.form_dependencies().
    """

    path = "/forms"
    exception_handlers = {NotFound: form_not_found_handler}

    @get("/")
    async def list_forms(self, form_registry: Registry) -> dict[str, Any]:
        forms = form_registry.get_all()
        return {"forms": forms, "count": len(forms)}

    @get("/{form_name:str}")
    async def get_form(self, form_name: FormName, form_registry: Registry) -> dict[str, Any]:
        return form_registry.get(form_name).to_dict()

    @post("/{form_name:str}")
    async def submit(
        self,
        request: Request,
        form_name: FormName,
        submission_processor: Processor,
    ) -> Response:
        data = await read_submission(request)
        envelope = submission_processor.process(form_name, data)
        return Response(
            content=envelope,
            status_code=HTTP_200_OK if envelope["success"] else HTTP_422_UNPROCESSABLE_ENTITY,
        )
