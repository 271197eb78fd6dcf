from fastapi.templating import Jinja2Templates

from cafe_admin import config
from cafe_admin.utils.enums import STATUS_LABELS_PT
from cafe_admin.utils.flash import pop_flash
from cafe_admin.utils.formatting import format_brl, format_pct

# Общий экземпляр: фильтры и глобальные переменные для всех шаблонов
templates = Jinja2Templates(directory=str(config.TEMPLATES_DIR))
templates.env.filters["brl"] = format_brl
templates.env.filters["pct"] = format_pct
templates.env.globals["pop_flash"] = pop_flash
templates.env.globals["status_labels"] = STATUS_LABELS_PT
templates.env.globals["app_name"] = config.APP_NAME
