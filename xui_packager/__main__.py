from xui_packager.cli import main


raise SystemExit(main())
