"""Image abilities — generate or edit images via the FLUX workflow."""

from .base import Ability
from ..flux import ImageWorkflowClient


def _prompt_schema(name: str, description: str, prompt_description: str) -> dict:
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": {
                    "prompt": {
                        "type": "string",
                        "description": prompt_description,
                    },
                },
                "required": ["prompt"],
            },
        },
    }


class GenerateImageAbility(Ability):
    """Create a new image from a text prompt."""

    name = "generate_image"
    description = (
        "Generate a new image based on a prompt. Use this when the user asks to "
        "create, draw, or generate a picture."
    )

    caption_prefix = "🎨 Imagem gerada"
    failure_message = "Desculpe, falhei ao gerar a imagem."

    def __init__(self, workflow: ImageWorkflowClient):
        self.workflow = workflow

    async def execute(self, params: dict, context: dict) -> dict:
        prompt = params.get("prompt")
        if not prompt:
            return {"success": False, "error": self.failure_message}

        location = await self.workflow.run("generate", prompt)
        if not location:
            return {"success": False, "error": self.failure_message}
        return {
            "success": True,
            "media": location,
            "caption": f"{self.caption_prefix}: {prompt}",
        }

    def get_schema(self) -> dict:
        return _prompt_schema(
            self.name,
            self.description,
            "The detailed, improved prompt for the image generation model.",
        )


class EditImageAbility(Ability):
    """Edit the image the user attached to their message."""

    name = "edit_image"
    description = (
        "Edit the provided image based on a prompt. Use this ONLY when the user asks "
        "to edit, change, or modify the image they sent."
    )

    caption_prefix = "🖌️ Edição realizada"
    failure_message = "Desculpe, falhei ao editar a imagem."
    missing_image_message = "Desculpe, preciso de uma imagem para editar."

    def __init__(self, workflow: ImageWorkflowClient):
        self.workflow = workflow

    async def execute(self, params: dict, context: dict) -> dict:
        source = context.get("image_base64")
        # Checked before the prompt; the workflow is never reached without a source image
        if not source:
            return {"success": False, "error": self.missing_image_message}
        prompt = params.get("prompt")
        if not prompt:
            return {"success": False, "error": self.failure_message}

        location = await self.workflow.run("edit", prompt, source)
        if not location:
            return {"success": False, "error": self.failure_message}
        return {
            "success": True,
            "media": location,
            "caption": f"{self.caption_prefix}: {prompt}",
        }

    def get_schema(self) -> dict:
        return _prompt_schema(
            self.name,
            self.description,
            "The detailed, improved prompt describing the desired edit.",
        )
