from kotaemon_installer.cli import app

app(prog_name="kotaemon-install")
