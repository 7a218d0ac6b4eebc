"""Survey importer for YAML survey definitions.

This module loads survey definitions from YAML files, validates them against
Pydantic schemas, and persists them as Survey, Question and QuestionOption
rows.
"""

from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import ValidationError
from sqlalchemy.orm import Session

from survey_data.errors import SurveyImportError
from survey_data.logging_config import get_logger
from survey_data.models import Survey
from survey_data.schemas.survey import SurveyDefinition
from survey_data.services.audit_trail import AuditTrail
from survey_data.services.repository import question_options, questions, surveys

logger = get_logger(__name__)


def parse_definition(
    raw_yaml: Union[str, bytes],
    source: str = "<string>",
) -> SurveyDefinition:
    """Parse and validate YAML text as a survey definition.

    Bytes are decoded as UTF-8.

    Raises:
        SurveyImportError: The text is not UTF-8, or the YAML is malformed
            or fails validation
    """
    if isinstance(raw_yaml, bytes):
        try:
            raw_yaml = raw_yaml.decode("utf-8")
        except UnicodeDecodeError as e:
            logger.error(f"Encoding error for {source}: {e}")
            raise SurveyImportError(f"Survey '{source}' is not valid UTF-8: {e}") from e

    try:
        raw_data = yaml.safe_load(raw_yaml)
    except yaml.YAMLError as e:
        logger.error(f"YAML parsing error for {source}: {e}")
        raise SurveyImportError(f"Invalid YAML in survey '{source}': {e}") from e

    if not isinstance(raw_data, dict):
        raise SurveyImportError(f"Survey '{source}' must be a mapping at the top level")

    try:
        return SurveyDefinition(**raw_data)
    except ValidationError as e:
        logger.error(f"Validation error for survey {source}: {e}")
        raise SurveyImportError(f"Validation failed for survey '{source}': {e}") from e


class SurveyImporter:
    """Service for importing survey definitions from a directory of YAML files."""

    def __init__(self, surveys_dir: Union[str, Path]):
        self.surveys_dir = Path(surveys_dir)

        if not self.surveys_dir.exists():
            logger.warning(f"Surveys directory not found: {self.surveys_dir}")

    def list_definitions(self) -> list[str]:
        """List available definition names (filenames without .yaml)."""
        if not self.surveys_dir.exists():
            return []
        return sorted(path.stem for path in self.surveys_dir.glob("*.yaml"))

    def load_definition(self, name: str) -> SurveyDefinition:
        """Load and validate ``<surveys_dir>/<name>.yaml``.

        Raises:
            SurveyImportError: The file is missing, unreadable or invalid
        """
        yaml_path = self.surveys_dir / f"{name}.yaml"
        if not yaml_path.exists():
            logger.error(f"Survey file not found: {yaml_path}")
            raise SurveyImportError(f"Survey '{name}' not found at {yaml_path}")

        try:
            raw_yaml = yaml_path.read_bytes()
        except OSError as e:
            logger.error(f"Error reading survey file {yaml_path}: {e}")
            raise SurveyImportError(f"Error reading survey '{name}': {e}") from e

        return parse_definition(raw_yaml, source=name)

    def import_file(
        self,
        db: Session,
        name: str,
        user_id: Optional[int] = None,
    ) -> Survey:
        """Load a definition file and persist it. The caller commits."""
        return import_definition(db, self.load_definition(name), user_id=user_id)


def import_definition(
    db: Session,
    definition: SurveyDefinition,
    user_id: Optional[int] = None,
) -> Survey:
    """Persist a validated definition as a survey with questions and options.

    Questions and options receive ``order`` values from their position in the
    definition. When ``user_id`` is given the user becomes the survey creator
    and an "import" audit entry is appended. The caller commits.
    """
    survey = surveys.create(
        db,
        title=definition.title,
        description=definition.description,
        user_id=user_id,
        is_published=definition.is_published,
        is_anonymous=definition.is_anonymous,
        is_public=definition.is_public,
    )

    for position, question_def in enumerate(definition.questions):
        question = questions.create(
            db,
            survey_id=survey.id,
            text=question_def.text,
            type=question_def.type.value,
            is_required=question_def.is_required,
            has_other=question_def.has_other,
            group=question_def.group,
            description=question_def.description,
            order=position,
        )
        for option_position, option_def in enumerate(question_def.options):
            question_options.create(
                db,
                question_id=question.id,
                text=option_def.text,
                is_default=option_def.is_default,
                order=option_position,
            )

    if user_id is not None:
        AuditTrail.log_action(
            db,
            user_id=user_id,
            action="import",
            entity_type="survey",
            entity_id=survey.id,
            details={"title": survey.title, "questions": len(definition.questions)},
        )

    logger.info(
        f"Imported survey {survey.id} '{survey.title}' "
        f"with {len(definition.questions)} questions"
    )
    db.refresh(survey)
    return survey
