from enum import Enum


class OrderStatus(str, Enum):
    NEW = "new"
    PROGRESS = "progress"
    CANCELED = "canceled"
    DONE = "done"


STATUS_LABELS_PT = {
    OrderStatus.NEW.value: "Novo",
    OrderStatus.PROGRESS.value: "Em preparo",
    OrderStatus.CANCELED.value: "Cancelado",
    OrderStatus.DONE.value: "Concluído",
}
