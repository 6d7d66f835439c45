"""WhatsApp (Green API): схемы webhook, команды, обработчики, маршрутизация."""
