"""Ready-made middlewares for chikit handlers."""